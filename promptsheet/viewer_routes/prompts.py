from __future__ import annotations

import re
from typing import Any, Protocol
from urllib.parse import parse_qs

from ..errors import PromptSheetError
from ..records import EDITABLE_FIELDS
from ..sync_engine import SyncEngine
from ..viewer_http import error_payload, error_status

_PROMPT_PATH_RE = re.compile(r"^/api/prompts/(\d+)$")


class _ViewerHandler(Protocol):
    def _send_json(self, payload: dict[str, Any], status: int = 200) -> None: ...


def _listing(engine: SyncEngine) -> dict[str, Any]:
    return {
        "items": [record.to_dict() for record in engine.view],
        "total": len(engine.records),
        "search": engine.search_term,
        "categories": engine.categories(),
        "error": engine.error,
        "loading": engine.loading,
        "stats": {
            "total": len(engine.records),
            "categories": len({record.category for record in engine.records}),
            "results": len(engine.view),
        },
    }


def _prompt_id(path: str) -> int | None:
    match = _PROMPT_PATH_RE.match(path)
    return int(match.group(1)) if match else None


def _fields(payload: dict[str, Any] | None) -> dict[str, Any]:
    if not payload:
        return {}
    return {key: payload[key] for key in EDITABLE_FIELDS if key in payload}


def _run(handler: _ViewerHandler, engine: SyncEngine, action) -> None:
    try:
        action()
    except PromptSheetError as exc:
        body = _listing(engine)
        body.update(error_payload(exc))
        handler._send_json(body, status=error_status(exc))
        return
    handler._send_json(_listing(engine))


def handle_get(handler: _ViewerHandler, engine: SyncEngine, path: str, query: str) -> bool:
    if path == "/api/prompts":
        params = parse_qs(query, keep_blank_values=True)
        if "q" in params:
            engine.filter(params["q"][0])
        handler._send_json(_listing(engine))
        return True

    prompt_id = _prompt_id(path)
    if prompt_id is not None:
        record = engine.get(prompt_id)
        if record is None:
            handler._send_json({"error": "prompt not found"}, status=404)
            return True
        handler._send_json({"item": record.to_dict()})
        return True
    return False


def handle_post(
    handler: _ViewerHandler,
    engine: SyncEngine,
    path: str,
    payload: dict[str, Any] | None,
) -> bool:
    if path == "/api/prompts/reload":
        _run(handler, engine, engine.load)
        return True

    if path == "/api/prompts":
        fields = _fields(payload)
        _run(handler, engine, lambda: engine.create(fields))
        return True

    prompt_id = _prompt_id(path)
    if prompt_id is not None:
        if payload is None:
            handler._send_json({"error": "invalid json"}, status=400)
            return True
        fields = _fields(payload)
        _run(handler, engine, lambda: engine.update(prompt_id, fields))
        return True
    return False


def handle_delete(handler: _ViewerHandler, engine: SyncEngine, path: str) -> bool:
    prompt_id = _prompt_id(path)
    if prompt_id is None:
        return False
    _run(handler, engine, lambda: engine.delete(prompt_id))
    return True
