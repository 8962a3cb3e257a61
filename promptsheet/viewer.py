from __future__ import annotations

import logging
import os
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import urlparse

from . import viewer_assets
from .config import PromptSheetConfig, load_config
from .errors import PromptSheetError
from .sync_engine import SyncEngine
from .viewer_http import (
    read_json_body,
    reject_cross_origin,
    send_bytes_response,
    send_json_response,
)
from .viewer_routes import config as viewer_routes_config
from .viewer_routes import prompts as viewer_routes_prompts

logger = logging.getLogger(__name__)

DEFAULT_VIEWER_HOST = "127.0.0.1"
DEFAULT_VIEWER_PORT = 38890


class ViewerServer(HTTPServer):
    """Single-threaded server; requests against the shared engine run one at a time."""

    def __init__(self, address: tuple[str, int], engine: SyncEngine) -> None:
        super().__init__(address, ViewerHandler)
        self.engine = engine


class ViewerHandler(BaseHTTPRequestHandler):
    server: ViewerServer

    @property
    def engine(self) -> SyncEngine:
        return self.server.engine

    def _send_json(self, payload: dict, status: int = 200) -> None:
        send_json_response(self, payload, status=status)

    def _send_index_html(self) -> None:
        send_bytes_response(
            self,
            viewer_assets.get_index_html_bytes(),
            content_type="text/html; charset=utf-8",
        )

    def _send_static_asset(self, asset_path: str) -> None:
        try:
            body, content_type = viewer_assets.get_static_asset_bytes(asset_path)
        except (FileNotFoundError, ValueError):
            self.send_response(404)
            self.end_headers()
            return
        send_bytes_response(self, body, content_type=content_type)

    def _read_json(self) -> dict[str, Any] | None:
        return read_json_body(self)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A003
        if os.environ.get("PROMPTSHEET_VIEWER_LOGS") == "1":
            super().log_message(format, *args)

    def _internal_error(self, exc: Exception) -> None:
        logger.exception("viewer request failed", exc_info=exc)
        payload: dict[str, Any] = {"error": "internal server error"}
        if os.environ.get("PROMPTSHEET_VIEWER_DEBUG") == "1":
            payload["detail"] = str(exc)
        self._send_json(payload, status=500)

    def do_GET(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if parsed.path == "/":
            self._send_index_html()
            return
        if parsed.path.startswith("/assets/"):
            self._send_static_asset(parsed.path[len("/assets/") :])
            return
        try:
            if viewer_routes_config.handle_get(self, self.engine, parsed.path):
                return
            if viewer_routes_prompts.handle_get(self, self.engine, parsed.path, parsed.query):
                return
            self.send_response(404)
            self.end_headers()
        except Exception as exc:  # pragma: no cover
            self._internal_error(exc)

    def do_POST(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if reject_cross_origin(self):
            return
        payload = self._read_json()
        try:
            if viewer_routes_config.handle_post(self, self.engine, parsed.path, payload):
                return
            if viewer_routes_prompts.handle_post(self, self.engine, parsed.path, payload):
                return
            self.send_response(404)
            self.end_headers()
        except Exception as exc:  # pragma: no cover
            self._internal_error(exc)

    def do_DELETE(self) -> None:  # noqa: N802
        parsed = urlparse(self.path)
        if reject_cross_origin(self):
            return
        try:
            if viewer_routes_prompts.handle_delete(self, self.engine, parsed.path):
                return
            self.send_response(404)
            self.end_headers()
        except Exception as exc:  # pragma: no cover
            self._internal_error(exc)


def build_server(
    host: str,
    port: int,
    *,
    config: PromptSheetConfig | None = None,
    engine: SyncEngine | None = None,
) -> ViewerServer:
    if engine is None:
        engine = SyncEngine(config or load_config())
    return ViewerServer((host, port), engine)


def _initial_load(engine: SyncEngine) -> None:
    if not engine.config.is_complete():
        return
    try:
        engine.load()
    except PromptSheetError as exc:
        logger.warning("initial load failed: %s", exc)


def _serve(server: ViewerServer) -> None:
    _initial_load(server.engine)
    server.serve_forever()


def port_in_use(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(0.2)
        try:
            return sock.connect_ex((host, port)) == 0
        except OSError:
            return False


def start_viewer(
    host: str = DEFAULT_VIEWER_HOST,
    port: int = DEFAULT_VIEWER_PORT,
    background: bool = False,
    *,
    config: PromptSheetConfig | None = None,
) -> ViewerServer | None:
    if port_in_use(host, port):
        return None
    server = build_server(host, port, config=config)
    logger.info("viewer listening on http://%s:%s", host, port)
    if background:
        thread = threading.Thread(target=_serve, args=(server,), daemon=True)
        thread.start()
    else:
        _serve(server)
    return server
