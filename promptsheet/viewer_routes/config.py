from __future__ import annotations

from typing import Any, Protocol

from ..config import get_config_path, load_config, save_credentials
from ..errors import PromptSheetError
from ..sync_engine import SyncEngine
from ..viewer_http import error_payload, error_status


class _ViewerHandler(Protocol):
    def _send_json(self, payload: dict[str, Any], status: int = 200) -> None: ...


def _config_body(engine: SyncEngine) -> dict[str, Any]:
    return {
        "path": str(get_config_path()),
        "config": engine.config.redacted(),
        "complete": engine.config.is_complete(),
        "missing": engine.config.missing_keys(),
    }


def handle_get(handler: _ViewerHandler, engine: SyncEngine, path: str) -> bool:
    if path != "/api/config":
        return False
    handler._send_json(_config_body(engine))
    return True


def handle_post(
    handler: _ViewerHandler,
    engine: SyncEngine,
    path: str,
    payload: dict[str, Any] | None,
) -> bool:
    if path != "/api/config":
        return False
    if payload is None:
        handler._send_json({"error": "invalid json"}, status=400)
        return True

    values: dict[str, str] = {}
    for key in ("store_id", "access_key", "sheet_name"):
        value = payload.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            handler._send_json({"error": f"{key} must be string"}, status=400)
            return True
        values[key] = value.strip()

    try:
        save_credentials(
            values.get("store_id", engine.config.store_id),
            values.get("access_key", engine.config.access_key),
            sheet_name=values.get("sheet_name"),
        )
    except (OSError, ValueError) as exc:
        handler._send_json({"error": f"failed to write config: {exc}"}, status=500)
        return True

    engine.reconfigure(load_config())
    body = _config_body(engine)
    try:
        engine.load()
    except PromptSheetError as exc:
        body.update(error_payload(exc))
        handler._send_json(body, status=error_status(exc))
        return True
    body["total"] = len(engine.records)
    handler._send_json(body)
    return True
