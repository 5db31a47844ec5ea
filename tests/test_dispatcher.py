"""Request building and response classification of the dispatcher."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from adapters.dispatcher import dispatch, dispatch_outcome
from adapters.http_client import ConnectionContext, basic_credentials
from core.domain.errors import CouchDbError, ErrorKind, ResponseDecodeError, TransportError
from core.domain.requests import CallFailed, CallOk, JsonBody, StreamBody


def _context(handler, **kwargs) -> ConnectionContext:
    return ConnectionContext(
        url="http://couch.test:5984/db",
        credentials=basic_credentials("admin", "secret"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class Recorder:
    def __init__(self, response: httpx.Response | None = None) -> None:
        self.response = response or httpx.Response(200, json={"ok": True})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def test_basic_credentials_encoding():
    assert basic_credentials("admin", "couchdb") == "Basic YWRtaW46Y291Y2hkYg=="


def test_every_request_carries_auth_and_accept():
    recorder = Recorder()

    result = asyncio.run(dispatch(_context(recorder), "GET", "/doc"))

    assert result == {"ok": True}
    request = recorder.requests[0]
    assert str(request.url) == "http://couch.test:5984/db/doc"
    assert request.headers["Authorization"] == basic_credentials("admin", "secret")
    assert request.headers["Accept"] == "application/json"


def test_json_body_overrides_content_type():
    recorder = Recorder()
    payload = {"_id": "a", "n": 1, "tags": ["x"]}

    asyncio.run(
        dispatch(
            _context(recorder),
            "PUT",
            "/a",
            body=JsonBody(payload),
            headers={"content-type": "text/plain", "X-Trace": "1"},
        )
    )

    request = recorder.requests[0]
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["X-Trace"] == "1"
    assert json.loads(request.content) == payload
    assert request.content == b'{"_id":"a","n":1,"tags":["x"]}'


def test_caller_cannot_override_authorization():
    recorder = Recorder()

    asyncio.run(dispatch(_context(recorder), "GET", "/a", headers={"Authorization": "Bearer nope"}))

    assert recorder.requests[0].headers["Authorization"] == basic_credentials("admin", "secret")


def test_stream_body_is_sent_unmodified():
    recorder = Recorder(httpx.Response(201, json={"ok": True, "id": "a", "rev": "2-b"}))

    async def chunks():
        yield b"hello "
        yield b"world"

    asyncio.run(
        dispatch(
            _context(recorder),
            "PUT",
            "/a/file.txt",
            params={"rev": "1-a"},
            body=StreamBody(chunks()),
            headers={"Content-Type": "text/plain"},
        )
    )

    request = recorder.requests[0]
    assert request.content == b"hello world"
    assert request.headers["Content-Type"] == "text/plain"
    assert request.url.params["rev"] == "1-a"


def test_no_body_means_no_content_type():
    recorder = Recorder()

    asyncio.run(dispatch(_context(recorder), "GET", "/a"))

    assert "Content-Type" not in recorder.requests[0].headers


def test_query_params_are_encoded_in_order():
    recorder = Recorder()

    asyncio.run(
        dispatch(
            _context(recorder),
            "GET",
            "/_all_docs",
            params={"limit": 3, "include_docs": True, "ids": ["a", "b"]},
        )
    )

    params = recorder.requests[0].url.params
    assert list(params.multi_items()) == [
        ("limit", "3"),
        ("include_docs", "true"),
        ("ids", "a"),
        ("ids", "b"),
        ("ids", "a,b"),
    ]


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (404, ErrorKind.NOT_FOUND),
        (409, ErrorKind.CONFLICT),
        (400, ErrorKind.OTHER),
        (500, ErrorKind.OTHER),
    ],
)
def test_non_2xx_is_classified(status, kind):
    body = '{"error":"x","reason":"y"}'
    recorder = Recorder(httpx.Response(status, text=body))

    outcome = asyncio.run(dispatch_outcome(_context(recorder), "GET", "/doc"))

    assert isinstance(outcome, CallFailed)
    assert outcome.kind is kind
    assert outcome.error.status == status
    assert outcome.error.status_text == httpx.codes.get_reason_phrase(status)
    assert outcome.error.request == "GET|/doc"
    assert outcome.error.error_body == body
    assert str(outcome.error) == f"CouchDB - {status} - {httpx.codes.get_reason_phrase(status)}"


def test_dispatch_raises_classified_error_with_call_identity():
    recorder = Recorder(httpx.Response(409, text="conflict!"))

    with pytest.raises(CouchDbError) as excinfo:
        asyncio.run(dispatch(_context(recorder), "DELETE", "/doc", params={"rev": "1-a"}))

    assert excinfo.value.kind is ErrorKind.CONFLICT
    assert excinfo.value.request == "DELETE|/doc?rev=1-a"
    assert excinfo.value.error_body == "conflict!"


def test_success_outcome_carries_status():
    recorder = Recorder(httpx.Response(201, json={"ok": True}))

    outcome = asyncio.run(dispatch_outcome(_context(recorder), "PUT", "/doc", body=JsonBody({})))

    assert isinstance(outcome, CallOk)
    assert outcome.status == 201
    assert outcome.value == {"ok": True}


def test_transport_failure_is_normalized():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(dispatch(_context(handler), "GET", "/doc"))

    assert not isinstance(excinfo.value, httpx.HTTPError)
    assert excinfo.value.__cause__ is None
    assert excinfo.value.url == "http://couch.test:5984/db/doc"
    assert "not connected" in str(excinfo.value)


def test_invalid_json_on_success_is_fatal():
    recorder = Recorder(httpx.Response(200, text="<html>proxy</html>"))

    with pytest.raises(ResponseDecodeError) as excinfo:
        asyncio.run(dispatch_outcome(_context(recorder), "GET", "/doc"))

    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.body == "<html>proxy</html>"
    assert excinfo.value.request == "GET|/doc"


def test_raw_outcome_returns_response():
    recorder = Recorder(httpx.Response(200, content=b"\x00\x01", headers={"Content-Type": "image/png"}))

    outcome = asyncio.run(
        dispatch_outcome(_context(recorder), "GET", "/doc/a.png", accept="*/*", decode=False)
    )

    assert isinstance(outcome, CallOk)
    assert outcome.value.content == b"\x00\x01"
    assert recorder.requests[0].headers["Accept"] == "*/*"


def test_debug_logs_request_without_credentials(caplog):
    recorder = Recorder()

    with caplog.at_level(logging.INFO, logger="adapters.dispatcher"):
        asyncio.run(
            dispatch(_context(recorder), "PUT", "/a", body=JsonBody({"greeting": "hi"}), debug=True)
        )

    messages = [r.getMessage() for r in caplog.records if r.name == "adapters.dispatcher"]
    assert len(messages) == 1
    assert "http://couch.test:5984/db/a" in messages[0]
    assert "'greeting': 'hi'" in messages[0]
    assert "PUT" in messages[0]
    assert "YWRtaW46c2VjcmV0" not in messages[0]


def test_debug_is_silent_by_default(caplog):
    recorder = Recorder()

    with caplog.at_level(logging.INFO, logger="adapters.dispatcher"):
        asyncio.run(dispatch(_context(recorder), "GET", "/a"))

    assert [r for r in caplog.records if r.name == "adapters.dispatcher"] == []


def test_context_level_debug_enables_logging(caplog):
    recorder = Recorder()

    with caplog.at_level(logging.INFO, logger="adapters.dispatcher"):
        asyncio.run(dispatch(_context(recorder, debug=True), "GET", "/a"))

    assert any("Fetching" in r.getMessage() for r in caplog.records)
