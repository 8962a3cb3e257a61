from __future__ import annotations

import json
import os
from http.server import BaseHTTPRequestHandler
from typing import Any
from urllib.parse import urlparse

from .errors import ConfigMissing, PromptSheetError, RemoteError, ValidationError

_ALLOWED_ORIGIN_HOSTS = {"127.0.0.1", "localhost", "::1"}


def _is_allowed_loopback_origin_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme != "http":
        return False
    if parsed.username is not None or parsed.password is not None:
        return False
    try:
        hostname = parsed.hostname
        _ = parsed.port
    except ValueError:
        return False
    return hostname in _ALLOWED_ORIGIN_HOSTS


def send_json_response(
    handler: BaseHTTPRequestHandler,
    payload: dict,
    status: int = 200,
) -> None:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    handler.send_response(status)
    handler.send_header("Content-Type", "application/json; charset=utf-8")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def send_bytes_response(
    handler: BaseHTTPRequestHandler,
    body: bytes,
    *,
    content_type: str,
    status: int = 200,
) -> None:
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    if os.environ.get("PROMPTSHEET_VIEWER_NO_CACHE") == "1":
        handler.send_header("Cache-Control", "no-store")
    handler.send_header("Content-Length", str(len(body)))
    handler.end_headers()
    handler.wfile.write(body)


def read_json_body(handler: BaseHTTPRequestHandler) -> dict[str, Any] | None:
    try:
        length = int(handler.headers.get("Content-Length", "0") or 0)
    except ValueError:
        return None
    if length <= 0:
        return None
    raw = handler.rfile.read(length).decode("utf-8", errors="replace")
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def reject_cross_origin(handler: BaseHTTPRequestHandler) -> bool:
    origin = handler.headers.get("Origin")
    if not origin:
        return False
    if _is_allowed_loopback_origin_url(origin):
        return False
    send_json_response(handler, {"error": "forbidden"}, status=403)
    return True


def error_status(exc: PromptSheetError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ConfigMissing):
        return 409
    if isinstance(exc, RemoteError):
        return 502
    return 500


def error_payload(exc: PromptSheetError) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": str(exc), "code": exc.code}
    if isinstance(exc, ValidationError) and exc.fields:
        payload["fields"] = exc.fields
    if isinstance(exc, ConfigMissing):
        payload["missing"] = exc.missing
    if isinstance(exc, RemoteError) and exc.status is not None:
        payload["status"] = exc.status
    return payload
