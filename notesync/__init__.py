# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
notesync - client-side persistence for document notes.

Keeps the notes of a document in a page-indexed collection, loads them from
a remote endpoint, saves every change back with coalesced full-replace PUTs
and tells subscribers when the notes change.

Usage:
    from notesync import HttpTransport, Note, NoteStore, StoreConfig

    config = StoreConfig(url="http://localhost:8080/documents/1/notes")
    async with NoteStore(HttpTransport(config), config) as store:
        store.notifier.subscribe("noteschanged", redraw)
        await store.loaded
        await store.add(Note(page_index=0, x=72, y=144, width=288, height=72))
"""

from .codec import decode, encode
from .collection import PagedCollection
from .config import DEFAULT_MAX_PAGES, DEFAULT_TIMEOUT_SECS, StoreConfig
from .errors import (
    ErrorKind,
    LoadError,
    NoteSyncError,
    ParseFailure,
    SaveError,
    TransportError,
    ValidationFailure,
)
from .events import (
    MOVE_TO_NEXT_NOTE,
    MOVE_TO_PREVIOUS_NOTE,
    NOTES_CHANGED,
    ChangeNotifier,
)
from .models import Note, sort_key
from .store import NoteStore, SaveState
from .transport import HttpTransport, Transport

__all__ = [
    # Data
    "Note",
    "sort_key",
    "PagedCollection",
    "encode",
    "decode",
    # Config
    "StoreConfig",
    "DEFAULT_MAX_PAGES",
    "DEFAULT_TIMEOUT_SECS",
    # Events
    "ChangeNotifier",
    "NOTES_CHANGED",
    "MOVE_TO_NEXT_NOTE",
    "MOVE_TO_PREVIOUS_NOTE",
    # Exceptions
    "ErrorKind",
    "NoteSyncError",
    "TransportError",
    "LoadError",
    "ParseFailure",
    "ValidationFailure",
    "SaveError",
    # Transport & store
    "Transport",
    "HttpTransport",
    "NoteStore",
    "SaveState",
]

__version__ = "1.0.0"
