# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Exceptions raised by the note store."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    ABORT = "abort"
    HTTP_STATUS = "http_status"
    PARSE = "parse"
    VALIDATION = "validation"


def _describe(kind: ErrorKind, status_code: Optional[int], message: str) -> str:
    text = kind.value
    if status_code is not None:
        text += f" {status_code}"
    if message:
        text += f": {message}"
    return text


class NoteSyncError(Exception):
    pass


class TransportError(NoteSyncError):
    """A request failed before a 2xx response was received."""

    def __init__(
        self, kind: ErrorKind, status_code: Optional[int] = None, message: str = ""
    ):
        self.kind, self.status_code, self.message = kind, status_code, message
        super().__init__(_describe(kind, status_code, message))


class LoadError(NoteSyncError):
    """The initial load failed; every later mutation fails with it too."""

    def __init__(
        self, kind: ErrorKind, status_code: Optional[int] = None, message: str = ""
    ):
        self.kind, self.status_code, self.message = kind, status_code, message
        super().__init__(f"Load failed: {_describe(kind, status_code, message)}")

    @classmethod
    def from_transport(cls, err: TransportError) -> LoadError:
        return cls(err.kind, err.status_code, err.message)


class ParseFailure(LoadError):
    def __init__(self, message: str):
        super().__init__(ErrorKind.PARSE, message=message)


class ValidationFailure(LoadError):
    def __init__(self, record: Any, message: str = "invalid note record"):
        self.record = record
        super().__init__(ErrorKind.VALIDATION, message=f"{message}: {record!r}")


class SaveError(NoteSyncError):
    """A save failed. The in-memory notes are left as they were."""

    def __init__(
        self, kind: ErrorKind, status_code: Optional[int] = None, message: str = ""
    ):
        self.kind, self.status_code, self.message = kind, status_code, message
        super().__init__(f"Save failed: {_describe(kind, status_code, message)}")

    @classmethod
    def from_transport(cls, err: TransportError) -> SaveError:
        return cls(err.kind, err.status_code, err.message)
