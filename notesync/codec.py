# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Conversion between a PagedCollection and the JSON wire format.

The wire format is a flat array of note objects::

    [{"pageIndex": 0, "x": 72, "y": 144, "width": 288, "height": 72,
      "text": "..."}, ...]
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional, Union

from .collection import PagedCollection
from .errors import ParseFailure, ValidationFailure
from .models import Note

_NUMBER_FIELDS = ("x", "y", "width", "height")


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and (isinstance(value, int) or math.isfinite(value))
    )


def _reject_constant(name: str) -> None:
    # json accepts NaN and Infinity by default; they are not JSON.
    raise ParseFailure(f"invalid numeric constant {name}")


def _validate(record: Any, max_pages: Optional[int]) -> None:
    if not isinstance(record, dict):
        raise ValidationFailure(record, "note is not an object")
    page_index = record.get("pageIndex")
    if (
        not _is_number(page_index)
        or page_index < 0
        or (isinstance(page_index, float) and not page_index.is_integer())
    ):
        raise ValidationFailure(record, "pageIndex must be a non-negative integer")
    if max_pages is not None and page_index >= max_pages:
        raise ValidationFailure(record, f"pageIndex must be below {max_pages}")
    for name in _NUMBER_FIELDS:
        if not _is_number(record.get(name)):
            raise ValidationFailure(record, f"{name} must be a finite number")
    if not isinstance(record.get("text"), str):
        raise ValidationFailure(record, "text must be a string")


def encode(collection: PagedCollection) -> str:
    """Flatten ``collection`` into the wire format, in document order.

    Raises ValueError if a note holds a non-finite coordinate.
    """
    return json.dumps([note.to_dict() for note in collection], allow_nan=False)


def decode(
    body: Union[str, bytes], max_pages: Optional[int] = None
) -> PagedCollection:
    """Parse the wire format into a new PagedCollection.

    Raises ParseFailure for malformed JSON and ValidationFailure for the
    first record with a missing or mistyped field, or with a pageIndex of
    ``max_pages`` or more. Records may arrive in any page order.
    """
    try:
        data = json.loads(body, parse_constant=_reject_constant)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseFailure(str(e)) from e
    if not isinstance(data, list):
        raise ParseFailure(f"expected a JSON array, got {type(data).__name__}")

    for record in data:
        _validate(record, max_pages)

    # sorted() is stable, so order within a page survives.
    records = sorted(data, key=lambda r: r["pageIndex"])
    return PagedCollection.from_notes(Note.from_dict(r) for r in records)
