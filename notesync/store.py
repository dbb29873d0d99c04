# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
NoteStore - keeps the notes of one document and synchronizes them.

The store loads every note with a single GET when it is created, applies
mutations in call order, and saves the whole collection with a PUT after
each change. Saves are coalesced: while one PUT is in flight, any number of
further mutations share a single follow-up PUT that encodes the collection
when it starts.

Usage:
    async with NoteStore(HttpTransport(config), config) as store:
        await store.loaded
        note = Note(page_index=0, x=72, y=144, width=288, height=72, text="Hi")
        await store.add(note)
        await store.set_note_text(note, "Hello")
"""

from __future__ import annotations

import asyncio
import logging
import math
from enum import Enum
from typing import Any, Callable, Optional

from . import codec
from .collection import PagedCollection
from .config import StoreConfig
from .errors import ErrorKind, LoadError, SaveError, TransportError
from .events import NOTES_CHANGED, ChangeNotifier
from .models import Note
from .transport import Body, Transport

logger = logging.getLogger(__name__)

# (changed, result) of applying one mutation to the collection.
_Apply = Callable[[], tuple[bool, Any]]


class SaveState(Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVING_QUEUED = "saving_queued"


def _release(previous: asyncio.Future, slot: asyncio.Future) -> None:
    """Complete ``slot`` once the slot before it has completed."""
    if not previous.done():
        previous.add_done_callback(lambda _: _release(previous, slot))
    elif not slot.done():
        slot.set_result(None)


def _copy_outcome(target: asyncio.Future, source: asyncio.Future) -> None:
    if target.done():
        return
    if source.cancelled():
        target.set_exception(SaveError(ErrorKind.ABORT, message="save cancelled"))
    elif source.exception() is not None:
        target.set_exception(source.exception())
    else:
        target.set_result(None)


class NoteStore:
    """Sync engine for the notes of one document.

    Must be created inside a running event loop; creation starts the load.
    """

    def __init__(
        self,
        transport: Transport,
        config: StoreConfig,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self._loop = asyncio.get_running_loop()
        self.transport = transport
        self.config = config
        self.notifier = notifier or ChangeNotifier()

        self._collection = PagedCollection()
        self._dirty = False

        # Save queue
        self._state = SaveState.IDLE
        self._in_flight: Optional[asyncio.Task] = None
        self._queued: Optional[asyncio.Future] = None
        self._last_save: Optional[asyncio.Future] = None

        # Completes once the latest mutation has requested its save.
        self._tail: asyncio.Future = self._resolved()

        self.loaded: asyncio.Task = self._loop.create_task(self._load())
        self.loaded.add_done_callback(self._on_loaded)

    async def __aenter__(self) -> NoteStore:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.transport.close()

    def _resolved(self) -> asyncio.Future:
        fut = self._loop.create_future()
        fut.set_result(None)
        return fut

    # --- Load ---

    async def _fetch(self) -> Body:
        try:
            return await self.transport.request(
                "GET", self.config.url, timeout=self.config.load_timeout_secs
            )
        except TransportError as e:
            raise LoadError.from_transport(e) from e

    async def _load(self) -> None:
        try:
            collection = codec.decode(await self._fetch(), self.config.max_pages)
        except LoadError:
            self._collection = PagedCollection()
            raise
        self._collection = collection
        logger.info(
            "Loaded %d notes on %d pages from %s",
            collection.note_count,
            len(collection),
            self.config.url,
        )
        self.notifier.notify(NOTES_CHANGED)

    def _on_loaded(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Loading notes from %s was cancelled", self.config.url)
        elif task.exception() is not None:
            logger.warning("Loading notes failed: %s", task.exception())

    # --- Queries ---

    @property
    def page_count(self) -> int:
        return len(self._collection)

    @property
    def save_state(self) -> SaveState:
        return self._state

    @property
    def dirty(self) -> bool:
        return self._dirty

    def notes(self) -> tuple[Note, ...]:
        """Every note, in document order."""
        return tuple(self._collection)

    def pages(self) -> list[tuple[Note, ...]]:
        return self._collection.pages()

    def get_notes_for_page_index(self, page_index: int) -> tuple[Note, ...]:
        return self._collection.get_page(page_index)

    def get_note(self, page_index: int, index_on_page: int) -> Optional[Note]:
        return self._collection.get_note(page_index, index_on_page)

    def get_next_note(self, note: Optional[Note] = None) -> Optional[Note]:
        return self._collection.next_note(note)

    def get_previous_note(self, note: Optional[Note] = None) -> Optional[Note]:
        return self._collection.previous_note(note)

    # --- Mutations ---

    def add(self, note: Note) -> asyncio.Future:
        """Store ``note``; resolves to the same note once it is saved."""
        if note.page_index < 0:
            raise ValueError(f"page_index must be non-negative: {note.page_index}")
        if note.page_index >= self.config.max_pages:
            raise ValueError(
                f"page_index must be below {self.config.max_pages}: {note.page_index}"
            )
        for name in ("x", "y", "width", "height"):
            value = getattr(note, name)
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{name} must be finite: {value}")

        def apply():
            self._collection.add(note)
            return True, note

        return self._mutate(apply)

    def delete_note(self, note: Note) -> asyncio.Future:
        """Remove ``note``. Deleting a note that is not stored is a no-op."""
        return self._mutate(lambda: (self._collection.remove(note), None))

    def set_note_text(self, note: Note, text: str) -> asyncio.Future:
        """Change the text of ``note``; resolves to the updated note.

        Resolves to None without saving when ``note`` is not stored.
        """

        def apply():
            updated = self._collection.set_text(note, text)
            return updated is not None, updated

        return self._mutate(apply)

    def save(self) -> asyncio.Future:
        """Save now if anything changed since the last successful save."""
        return self._mutate(lambda: (False, None), force_save=True)

    def _mutate(self, apply: _Apply, force_save: bool = False) -> asyncio.Future:
        # Claim the ordering slot now so mutations apply in call order.
        previous, scheduled = self._tail, self._loop.create_future()
        self._tail = scheduled
        task = self._loop.create_task(
            self._run_mutation(previous, scheduled, apply, force_save)
        )
        # A task cancelled before it starts must still release its slot.
        task.add_done_callback(lambda _: _release(previous, scheduled))
        return task

    async def _run_mutation(
        self,
        previous: asyncio.Future,
        scheduled: asyncio.Future,
        apply: _Apply,
        force_save: bool,
    ) -> Any:
        try:
            await asyncio.shield(previous)
            await asyncio.shield(self.loaded)
            changed, result = apply()
            if changed:
                self.notifier.notify(NOTES_CHANGED)
                self._dirty = True
            if changed or force_save:
                save = self._request_save()
            else:
                # Only save() retries a failed save; other no-ops never PUT.
                save = self._queued or self._in_flight or self._resolved()
        finally:
            _release(previous, scheduled)
        await asyncio.shield(save)
        return result

    # --- Save queue ---

    def _set_state(self, state: SaveState) -> None:
        logger.debug("Save state %s -> %s", self._state.value, state.value)
        self._state = state

    def _request_save(self) -> asyncio.Future:
        if not self._dirty:
            return (
                self._queued or self._in_flight or self._last_save or self._resolved()
            )
        if self._state is SaveState.IDLE:
            return self._start_save()
        if self._state is SaveState.SAVING:
            self._queued = self._loop.create_future()
            self._set_state(SaveState.SAVING_QUEUED)
        return self._queued

    def _start_save(self) -> asyncio.Task:
        task = self._loop.create_task(self._do_save())
        task.add_done_callback(self._on_save_done)
        self._in_flight = task
        self._set_state(SaveState.SAVING)
        return task

    def _on_save_done(self, task: asyncio.Task) -> None:
        self._last_save = task
        self._in_flight = None
        if task.cancelled():
            self._dirty = True
            logger.warning("Saving notes was cancelled")
        else:
            # Marks the exception retrieved; the failure is logged in _do_save.
            task.exception()

        if self._state is SaveState.SAVING_QUEUED:
            queued, self._queued = self._queued, None
            follow_up = self._start_save()
            follow_up.add_done_callback(lambda t: _copy_outcome(queued, t))
        else:
            self._set_state(SaveState.IDLE)

    async def _do_save(self) -> None:
        # Cleared first: changes made while the PUT is in flight re-dirty the
        # store and are picked up by the queued follow-up.
        self._dirty = False
        body = codec.encode(self._collection)
        logger.debug(
            "Saving %d notes to %s", self._collection.note_count, self.config.url
        )
        try:
            await self.transport.request(
                "PUT", self.config.url, body=body, timeout=self.config.save_timeout_secs
            )
        except TransportError as e:
            self._dirty = True
            logger.warning("Saving notes failed: %s", e)
            raise SaveError.from_transport(e) from e
