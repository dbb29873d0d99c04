# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
PagedCollection - page-indexed, per-page sorted storage for notes.

Notes live in a flat arena keyed by id; each page keeps an ordered list of
ids. The page list never has holes: it is always as long as the highest page
index seen plus one, with empty lists for pages that hold no notes.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from .models import Note, sort_key


class PagedCollection:
    def __init__(self):
        self._notes: dict[str, Note] = {}
        self._pages: list[list[str]] = []

    @classmethod
    def from_notes(cls, notes: Iterable[Note]) -> PagedCollection:
        col = cls()
        for note in notes:
            col.add(note)
        return col

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Note]:
        """Yield every note in document order."""
        for page in self._pages:
            for note_id in page:
                yield self._notes[note_id]

    def __contains__(self, note: object) -> bool:
        return isinstance(note, Note) and note.id in self._notes

    @property
    def note_count(self) -> int:
        return len(self._notes)

    def pages(self) -> list[tuple[Note, ...]]:
        return [self.get_page(i) for i in range(len(self._pages))]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_page(self, page_index: int) -> tuple[Note, ...]:
        if not 0 <= page_index < len(self._pages):
            return ()
        return tuple(self._notes[i] for i in self._pages[page_index])

    def get_note(self, page_index: int, index_on_page: int) -> Optional[Note]:
        if not 0 <= page_index < len(self._pages):
            return None
        page = self._pages[page_index]
        if not 0 <= index_on_page < len(page):
            return None
        return self._notes[page[index_on_page]]

    def get(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def extend_to(self, page_count: int) -> None:
        while len(self._pages) < page_count:
            self._pages.append([])

    def add(self, note: Note) -> None:
        if note.page_index < 0:
            raise ValueError(f"page_index must be non-negative: {note.page_index}")
        if note.id in self._notes:
            raise ValueError(f"Note {note.id} is already stored")
        self.extend_to(note.page_index + 1)
        self._notes[note.id] = note
        self._pages[note.page_index].append(note.id)
        self._sort_page(note.page_index)

    def remove(self, note: Note) -> bool:
        stored = self._notes.pop(note.id, None)
        if stored is None:
            return False
        self._pages[stored.page_index].remove(stored.id)
        return True

    def set_text(self, note: Note, text: str) -> Optional[Note]:
        """Replace the stored note with a copy carrying ``text``.

        Returns the new instance, or None when ``note`` is not stored.
        """
        stored = self._notes.get(note.id)
        if stored is None:
            return None
        updated = stored.with_text(text)
        self._notes[updated.id] = updated
        self._sort_page(updated.page_index)
        return updated

    def _sort_page(self, page_index: int) -> None:
        self._pages[page_index].sort(key=lambda i: sort_key(self._notes[i]))

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def next_note(self, note: Optional[Note] = None) -> Optional[Note]:
        """The note after ``note`` in document order, wrapping to the first.

        With no reference (or one that is no longer stored) the first note of
        the document is returned.
        """
        return self._step(self, note)

    def previous_note(self, note: Optional[Note] = None) -> Optional[Note]:
        """The note before ``note`` in document order, wrapping to the last."""
        return self._step(self._reversed(), note)

    def _reversed(self) -> Iterator[Note]:
        for page in reversed(self._pages):
            for note_id in reversed(page):
                yield self._notes[note_id]

    def _step(self, ordered: Iterable[Note], ref: Optional[Note]) -> Optional[Note]:
        if ref is not None and ref.id not in self._notes:
            ref = None
        first: Optional[Note] = None
        found = ref is None
        for note in ordered:
            if found:
                return note
            if first is None:
                first = note
            found = note.id == ref.id
        # Reference was the final note visited (or there are none): wrap.
        return first
