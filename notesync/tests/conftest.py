# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Shared test utilities and configuration for note store tests.
"""

import asyncio
import json
import os
from typing import Optional

import pytest

from .. import Note, StoreConfig, Transport, TransportError

# Configuration (can be overridden via environment variables)
ENDPOINT = os.getenv("NOTESYNC_TEST_URL", "http://localhost:8080/documents/1/notes")


class FakeTransport(Transport):
    """Scripted transport recording every request.

    GET answers ``get_body`` or raises ``get_error``. Each PUT pops the next
    entry of ``put_errors`` (None meaning success). After ``hold()`` PUTs
    wait until ``release()`` is called.
    """

    def __init__(
        self, get_body: str = "[]", get_error: Optional[TransportError] = None
    ):
        self.get_body = get_body
        self.get_error = get_error
        self.put_errors: list[Optional[TransportError]] = []
        self.calls: list[tuple[str, str, Optional[str], float]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._gate: Optional[asyncio.Event] = None

    def hold(self):
        self._gate = asyncio.Event()

    def release(self):
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    def close(self):
        self.closed = True

    async def request(self, method, url, body=None, timeout=30.0):
        self.calls.append((method, url, body, timeout))
        if method == "GET":
            await asyncio.sleep(0)
            if self.get_error:
                raise self.get_error
            return self.get_body

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self._gate is not None:
                await self._gate.wait()
            if self.put_errors:
                err = self.put_errors.pop(0)
                if err is not None:
                    raise err
            return ""
        finally:
            self.in_flight -= 1

    @property
    def puts(self) -> list[tuple[str, str, Optional[str], float]]:
        return [c for c in self.calls if c[0] == "PUT"]

    def put_bodies(self) -> list[list]:
        return [json.loads(c[2]) for c in self.puts]


def make_note(
    page_index: int = 0,
    y: float = 0,
    x: float = 0,
    text: str = "",
    width: float = 10,
    height: float = 10,
) -> Note:
    return Note(page_index=page_index, x=x, y=y, width=width, height=height, text=text)


async def settle(rounds: int = 20):
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config() -> StoreConfig:
    return StoreConfig(url=ENDPOINT)
