# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Tests for HttpTransport error mapping and request shape."""

import asyncio
import time

import pytest
import requests
import zstandard as zstd

from .. import ErrorKind, HttpTransport, StoreConfig, TransportError
from .conftest import ENDPOINT


def _response(status: int = 200, content: bytes = b"[]", reason: str = "OK"):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp._content = content
    return resp


class StubSession:
    """Stands in for requests.Session, recording each call."""

    def __init__(self, response=None, error=None, delay: float = 0):
        self.response = response if response is not None else _response()
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []
        self.closed = False

    def request(self, method, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "data": data,
                "headers": headers,
                "timeout": timeout,
            }
        )
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


def _request(transport, method="GET", body=None, timeout=30.0):
    return asyncio.run(transport.request(method, ENDPOINT, body=body, timeout=timeout))


def test_get_returns_body():
    session = StubSession(_response(content=b'[{"text": "x"}]'))
    transport = HttpTransport(session=session)

    assert _request(transport) == b'[{"text": "x"}]'
    (call,) = session.calls
    assert call["method"] == "GET"
    assert call["url"] == ENDPOINT
    assert call["data"] is None
    assert call["timeout"] == 30.0
    assert "Content-Type" not in call["headers"]


def test_put_sends_json():
    session = StubSession(_response(204, b""))
    config = StoreConfig(url=ENDPOINT, headers={"Authorization": "Bearer t"})
    transport = HttpTransport(config, session=session)

    _request(transport, "PUT", body='[{"text": "é"}]', timeout=5)

    (call,) = session.calls
    assert call["data"] == '[{"text": "é"}]'.encode("utf-8")
    assert call["headers"]["Content-Type"].startswith("application/json")
    assert call["headers"]["Authorization"] == "Bearer t"
    assert "Content-Encoding" not in call["headers"]
    assert call["timeout"] == 5


def test_put_compressed():
    session = StubSession()
    config = StoreConfig(url=ENDPOINT, compress_uploads=True)
    transport = HttpTransport(config, session=session)

    _request(transport, "PUT", body="[]")

    (call,) = session.calls
    assert call["headers"]["Content-Encoding"] == "zstd"
    decompressor = zstd.ZstdDecompressor()
    assert decompressor.decompress(call["data"], max_output_size=1024) == b"[]"


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_non_2xx_is_http_status(status):
    transport = HttpTransport(session=StubSession(_response(status, reason="Nope")))

    with pytest.raises(TransportError) as exc_info:
        _request(transport)

    assert exc_info.value.kind is ErrorKind.HTTP_STATUS
    assert exc_info.value.status_code == status


@pytest.mark.parametrize(
    "error,kind",
    [
        (requests.ConnectTimeout("slow"), ErrorKind.TIMEOUT),
        (requests.ReadTimeout("slow"), ErrorKind.TIMEOUT),
        (requests.ConnectionError("refused"), ErrorKind.NETWORK),
        (requests.TooManyRedirects("loop"), ErrorKind.NETWORK),
    ],
)
def test_requests_errors_are_mapped(error, kind):
    transport = HttpTransport(session=StubSession(error=error))

    with pytest.raises(TransportError) as exc_info:
        _request(transport)

    assert exc_info.value.kind is kind
    assert exc_info.value.__cause__ is error


def test_overall_timeout():
    transport = HttpTransport(session=StubSession(delay=0.5))

    with pytest.raises(TransportError) as exc_info:
        _request(transport, timeout=0.05)

    assert exc_info.value.kind is ErrorKind.TIMEOUT


def test_closed_transport_aborts():
    session = StubSession()
    transport = HttpTransport(session=session)
    transport.close()

    with pytest.raises(TransportError) as exc_info:
        _request(transport)

    assert exc_info.value.kind is ErrorKind.ABORT
    assert session.calls == []
    # Injected sessions belong to the caller.
    assert not session.closed


def test_close_during_request_aborts():
    session = StubSession(delay=0.1)
    transport = HttpTransport(session=session)

    async def scenario():
        pending = asyncio.ensure_future(transport.request("GET", ENDPOINT))
        await asyncio.sleep(0.02)
        transport.close()
        return await pending

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(scenario())

    assert exc_info.value.kind is ErrorKind.ABORT


def test_owned_session_is_closed():
    transport = HttpTransport()
    transport._session = owned = StubSession()

    transport.close()

    assert owned.closed
    assert transport.closed
