from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/promptsheet/config.json").expanduser()
DEFAULT_API_BASE = "https://sheets.googleapis.com/v4"
DEFAULT_SHEET_NAME = "Prompts"

CONFIG_ENV_OVERRIDES = {
    "store_id": "PROMPTSHEET_STORE_ID",
    "access_key": "PROMPTSHEET_ACCESS_KEY",
    "sheet_name": "PROMPTSHEET_SHEET_NAME",
    "api_base": "PROMPTSHEET_API_BASE",
    "request_timeout_s": "PROMPTSHEET_REQUEST_TIMEOUT_S",
    "viewer_host": "PROMPTSHEET_VIEWER_HOST",
    "viewer_port": "PROMPTSHEET_VIEWER_PORT",
}

# Values that never leave the process in plain text (logs, `config show`).
SECRET_KEYS = frozenset({"access_key"})


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("PROMPTSHEET_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class PromptSheetConfig:
    store_id: str = ""
    access_key: str = ""
    sheet_name: str = DEFAULT_SHEET_NAME
    api_base: str = DEFAULT_API_BASE
    request_timeout_s: float = 10.0
    viewer_host: str = "127.0.0.1"
    viewer_port: int = 38890

    def missing_keys(self) -> list[str]:
        missing: list[str] = []
        if not self.store_id.strip():
            missing.append("store_id")
        if not self.access_key.strip():
            missing.append("access_key")
        return missing

    def is_complete(self) -> bool:
        return not self.missing_keys()

    def redacted(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if key in SECRET_KEYS:
                data[key] = mask_secret(str(value))
            else:
                data[key] = value
        return data


def mask_secret(value: str) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _coerce_str(value: object, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    return str(value)


def load_config(path: Path | None = None) -> PromptSheetConfig:
    cfg = PromptSheetConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text() or "{}")
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: PromptSheetConfig, data: dict[str, Any]) -> PromptSheetConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key == "viewer_port":
            cfg.viewer_port = _parse_int(value, cfg.viewer_port, key=key)
            continue
        if key == "request_timeout_s":
            cfg.request_timeout_s = _parse_float(value, cfg.request_timeout_s, key=key)
            continue
        setattr(cfg, key, _coerce_str(value, getattr(cfg, key)))
    return cfg


def _apply_env(cfg: PromptSheetConfig) -> PromptSheetConfig:
    cfg.store_id = os.getenv("PROMPTSHEET_STORE_ID", cfg.store_id).strip()
    cfg.access_key = os.getenv("PROMPTSHEET_ACCESS_KEY", cfg.access_key).strip()
    cfg.sheet_name = os.getenv("PROMPTSHEET_SHEET_NAME", cfg.sheet_name)
    cfg.api_base = os.getenv("PROMPTSHEET_API_BASE", cfg.api_base)
    cfg.request_timeout_s = _parse_float(
        os.getenv("PROMPTSHEET_REQUEST_TIMEOUT_S"),
        cfg.request_timeout_s,
        key="request_timeout_s",
    )
    cfg.viewer_host = os.getenv("PROMPTSHEET_VIEWER_HOST", cfg.viewer_host)
    cfg.viewer_port = _parse_int(
        os.getenv("PROMPTSHEET_VIEWER_PORT"), cfg.viewer_port, key="viewer_port"
    )
    return cfg


def save_credentials(
    store_id: str,
    access_key: str,
    path: Path | None = None,
    *,
    sheet_name: str | None = None,
) -> Path:
    """Persist the store credentials, keeping any other keys already on disk."""

    data = read_config_file(path)
    data["store_id"] = store_id.strip()
    data["access_key"] = access_key.strip()
    if sheet_name is not None and sheet_name.strip():
        data["sheet_name"] = sheet_name.strip()
    return write_config_file(data, path)
