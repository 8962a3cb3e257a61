from __future__ import annotations

import http.client
import io
import json
import threading

import pytest

from promptsheet.errors import ConfigMissing, RemoteReadError, ValidationError
from promptsheet.sync_engine import SyncEngine
from promptsheet.viewer import build_server
from promptsheet.viewer_http import (
    error_payload,
    error_status,
    read_json_body,
    reject_cross_origin,
    send_json_response,
)

T0 = "2026-01-01T00:00:00.000Z"


class DummyHandler:
    def __init__(self, body: bytes = b"", headers: dict[str, str] | None = None) -> None:
        self.headers = headers or {}
        self.rfile = io.BytesIO(body)
        self.wfile = io.BytesIO()
        self.status: int | None = None
        self.response_headers: list[tuple[str, str]] = []

    def send_response(self, status: int) -> None:
        self.status = status

    def send_header(self, key: str, value: str) -> None:
        self.response_headers.append((key, value))

    def end_headers(self) -> None:
        return


def test_send_json_response() -> None:
    handler = DummyHandler()

    send_json_response(handler, {"ok": True}, status=201)

    assert handler.status == 201
    assert ("Content-Type", "application/json; charset=utf-8") in handler.response_headers
    assert json.loads(handler.wfile.getvalue()) == {"ok": True}


def test_read_json_body_invalid_or_empty() -> None:
    assert read_json_body(DummyHandler(headers={"Content-Length": "0"})) is None
    assert read_json_body(DummyHandler(b"not-json", {"Content-Length": "8"})) is None
    assert read_json_body(DummyHandler(b"[1]", {"Content-Length": "3"})) is None


def test_read_json_body_rejects_malformed_content_length() -> None:
    assert read_json_body(DummyHandler(b"{}", {"Content-Length": "abc"})) is None
    assert read_json_body(DummyHandler(b"{}", {"Content-Length": "-1"})) is None


@pytest.mark.parametrize(
    "origin,rejected",
    [
        (None, False),
        ("http://127.0.0.1:38890", False),
        ("http://localhost:38890", False),
        ("https://evil.example", True),
        ("http://user:pw@localhost:38890", True),
    ],
)
def test_reject_cross_origin(origin: str | None, rejected: bool) -> None:
    handler = DummyHandler(headers={"Origin": origin} if origin else {})

    assert reject_cross_origin(handler) is rejected
    if rejected:
        assert handler.status == 403


def test_error_status_and_payload() -> None:
    assert error_status(ValidationError("bad", fields=["title"])) == 400
    assert error_status(ConfigMissing(["store_id"])) == 409
    assert error_status(RemoteReadError("down", status=503)) == 502
    assert error_payload(RemoteReadError("down", status=503)) == {
        "error": "down",
        "code": "remote_read_error",
        "status": 503,
    }


@pytest.fixture
def server(config, make_sheet):
    sheet = make_sheet([["Cold email", "Sales", "Write it", "Marketing", T0]])
    engine = SyncEngine(config, sheet, now=lambda: T0)
    engine.load()
    server = build_server("127.0.0.1", 0, engine=engine)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def _request(server, method: str, path: str, body: dict | None = None, headers=None):
    port = int(server.server_address[1])
    conn = http.client.HTTPConnection("127.0.0.1", port, timeout=5)
    try:
        payload = json.dumps(body).encode("utf-8") if body is not None else None
        request_headers = {"Content-Type": "application/json"} if payload else {}
        request_headers.update(headers or {})
        conn.request(method, path, body=payload, headers=request_headers)
        resp = conn.getresponse()
        raw = resp.read()
        return resp.status, raw
    finally:
        conn.close()


def test_server_serves_index_and_assets(server) -> None:
    status, raw = _request(server, "GET", "/")
    assert status == 200
    assert b"promptsheet" in raw

    status, raw = _request(server, "GET", "/assets/app.js")
    assert status == 200
    assert b"navigator.clipboard" in raw

    status, _ = _request(server, "GET", "/assets/../viewer.py")
    assert status == 404


def test_server_crud_roundtrip(server) -> None:
    status, raw = _request(server, "GET", "/api/prompts")
    assert status == 200
    assert json.loads(raw)["total"] == 1

    status, raw = _request(
        server, "POST", "/api/prompts", {"title": "B", "category": "C", "body": "D"}
    )
    assert status == 200
    assert [item["title"] for item in json.loads(raw)["items"]] == ["Cold email", "B"]

    status, raw = _request(server, "DELETE", "/api/prompts/1")
    assert status == 200
    assert [item["id"] for item in json.loads(raw)["items"]] == [1]


def test_server_rejects_cross_origin_post(server) -> None:
    status, _ = _request(
        server,
        "POST",
        "/api/prompts",
        {"title": "B", "category": "C", "body": "D"},
        headers={"Origin": "https://evil.example"},
    )

    assert status == 403
    assert len(server.engine.records) == 1


def test_server_unknown_route_is_404(server) -> None:
    status, _ = _request(server, "GET", "/api/nope")

    assert status == 404


def test_server_treats_malformed_content_length_as_missing_body(server) -> None:
    status, raw = _request(
        server, "POST", "/api/prompts/reload", headers={"Content-Length": "abc"}
    )

    assert status == 200
    assert json.loads(raw)["total"] == 1
