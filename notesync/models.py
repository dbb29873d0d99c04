# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Note record and its page ordering."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Union

Number = Union[int, float]


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Note:
    """A positioned rectangle with text, attached to one page.

    ``id`` is the handle identity used by the store for delete and edit. It
    is generated on construction, never sent on the wire and ignored by
    equality, so two notes with the same content compare equal.
    """

    page_index: int
    x: Number
    y: Number
    width: Number
    height: Number
    text: str = ""
    id: str = field(default_factory=_new_id, compare=False)

    def with_text(self, text: str) -> Note:
        """Copy of this note (same id) carrying ``text``."""
        return replace(self, text=text)

    def to_dict(self) -> dict:
        return {
            "pageIndex": self.page_index,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Note:
        return cls(
            page_index=int(d["pageIndex"]),
            x=d["x"],
            y=d["y"],
            width=d["width"],
            height=d["height"],
            text=d["text"],
        )


def sort_key(note: Note) -> tuple:
    # Top to bottom, then left to right.
    return (note.y, note.x, note.height, note.width, note.text)
