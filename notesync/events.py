# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Change notification for collaborators of the note store."""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Produced by the store after every load and mutation.
NOTES_CHANGED = "noteschanged"
# Raised by UI layers; handlers call get_next_note / get_previous_note.
MOVE_TO_NEXT_NOTE = "movetonextnote"
MOVE_TO_PREVIOUS_NOTE = "movetopreviousnote"

Listener = Callable[..., Any]


class ChangeNotifier:
    """Minimal publish/subscribe owned by a store."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``event``. Returns an unsubscribe function."""
        self._listeners.setdefault(event, []).append(listener)

        def unsubscribe():
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def notify(self, event: str, **payload: Any) -> None:
        # Copy so listeners may unsubscribe while being called.
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(**payload)
            except Exception:
                logger.exception("Listener %r for %s failed", listener, event)
