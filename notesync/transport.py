# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Transports used by the store to reach the notes endpoint."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional, Union

import requests
import zstandard as zstd

from .config import DEFAULT_TIMEOUT_SECS, StoreConfig
from .errors import ErrorKind, TransportError

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

Body = Union[str, bytes]


class Transport(ABC):
    """Request function consumed by the store.

    ``request`` returns the response body for a 2xx response and raises
    TransportError (NETWORK, TIMEOUT, ABORT or HTTP_STATUS) otherwise.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECS,
    ) -> Body: ...

    def close(self) -> None:
        pass


class HttpTransport(Transport):
    """Transport over HTTP using a requests session.

    The blocking request runs in a worker thread so the event loop keeps
    serving other notes operations while it waits.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.headers = dict(config.headers) if config else {}
        self.compress_uploads = config.compress_uploads if config else False
        self._session = session
        self._owns_session = session is None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        self._closed = True
        if self._owns_session and self._session:
            self._session.close()
            self._session = None

    def _send(
        self, method: str, url: str, body: Optional[str], timeout: float
    ) -> requests.Response:
        if self._session is None:
            self._session = requests.Session()

        headers = dict(self.headers)
        data = None
        if body is not None:
            data = body.encode("utf-8")
            headers["Content-Type"] = JSON_CONTENT_TYPE
            if self.compress_uploads:
                data = zstd.ZstdCompressor().compress(data)
                headers["Content-Encoding"] = "zstd"

        return self._session.request(
            method, url, data=data, headers=headers, timeout=timeout
        )

    async def request(
        self,
        method: str,
        url: str,
        body: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECS,
    ) -> Body:
        if self._closed:
            raise TransportError(ErrorKind.ABORT, message="transport is closed")

        logger.debug("%s %s (timeout %ss)", method, url, timeout)
        try:
            resp = await asyncio.wait_for(
                asyncio.to_thread(self._send, method, url, body, timeout), timeout
            )
        except (asyncio.TimeoutError, requests.Timeout) as e:
            kind = ErrorKind.ABORT if self._closed else ErrorKind.TIMEOUT
            raise TransportError(kind, message=f"{method} {url} timed out") from e
        except requests.RequestException as e:
            kind = ErrorKind.ABORT if self._closed else ErrorKind.NETWORK
            raise TransportError(kind, message=str(e)) from e

        if self._closed:
            raise TransportError(ErrorKind.ABORT, message="closed mid-request")
        if not 200 <= resp.status_code < 300:
            raise TransportError(
                ErrorKind.HTTP_STATUS, resp.status_code, resp.reason or ""
            )
        return resp.content
