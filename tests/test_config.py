import json
from pathlib import Path

import pytest

from promptsheet.config import (
    PromptSheetConfig,
    get_config_path,
    get_env_overrides,
    load_config,
    mask_secret,
    read_config_file,
    save_credentials,
    write_config_file,
)


def test_read_config_file_rejects_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not-json}")
    with pytest.raises(ValueError, match="invalid config json"):
        read_config_file(config_path)


def test_read_config_file_rejects_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]")
    with pytest.raises(ValueError, match="config must be an object"):
        read_config_file(config_path)


def test_read_config_file_missing_or_blank_is_empty(tmp_path: Path) -> None:
    assert read_config_file(tmp_path / "missing.json") == {}
    blank = tmp_path / "blank.json"
    blank.write_text("  \n")
    assert read_config_file(blank) == {}


def test_write_config_file_roundtrip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    data = {"store_id": "sheet", "access_key": "key"}
    write_config_file(data, config_path)
    assert json.loads(config_path.read_text()) == data
    assert read_config_file(config_path) == data


def test_get_config_path_uses_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "elsewhere.json"
    monkeypatch.setenv("PROMPTSHEET_CONFIG", str(target))

    assert get_config_path() == target


def test_load_config_defaults_when_file_missing() -> None:
    cfg = load_config()

    assert cfg == PromptSheetConfig()
    assert cfg.missing_keys() == ["store_id", "access_key"]
    assert cfg.is_complete() is False


def test_load_config_reads_file_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "store_id": " sheet-1 ",
                "access_key": "key-1",
                "sheet_name": "Library",
                "request_timeout_s": "2.5",
                "viewer_port": "9000",
                "unknown": "ignored",
            }
        )
    )

    cfg = load_config(config_path)

    assert cfg.store_id == "sheet-1"
    assert cfg.access_key == "key-1"
    assert cfg.sheet_name == "Library"
    assert cfg.request_timeout_s == 2.5
    assert cfg.viewer_port == 9000
    assert cfg.is_complete() is True


def test_load_config_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"store_id": "from-file", "access_key": "file-key"}))
    monkeypatch.setenv("PROMPTSHEET_STORE_ID", "from-env")
    monkeypatch.setenv("PROMPTSHEET_VIEWER_PORT", "8123")

    cfg = load_config(config_path)

    assert cfg.store_id == "from-env"
    assert cfg.access_key == "file-key"
    assert cfg.viewer_port == 8123
    assert get_env_overrides() == {"store_id": "from-env", "viewer_port": "8123"}


def test_load_config_warns_on_invalid_numbers(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PROMPTSHEET_REQUEST_TIMEOUT_S", "soon")
    with pytest.warns(RuntimeWarning, match="request_timeout_s"):
        cfg = load_config(tmp_path / "missing.json")
    assert cfg.request_timeout_s == PromptSheetConfig().request_timeout_s


def test_load_config_ignores_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{broken")

    assert load_config(config_path) == PromptSheetConfig()


def test_save_credentials_merges_existing_keys(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    write_config_file({"viewer_port": 9001, "store_id": "old"}, config_path)

    save_credentials(" new-sheet ", "new-key", config_path, sheet_name="Library")

    assert read_config_file(config_path) == {
        "viewer_port": 9001,
        "store_id": "new-sheet",
        "access_key": "new-key",
        "sheet_name": "Library",
    }


def test_redacted_masks_access_key() -> None:
    cfg = PromptSheetConfig(store_id="sheet", access_key="abcdef123456")

    data = cfg.redacted()

    assert data["store_id"] == "sheet"
    assert data["access_key"] == "********3456"
    assert mask_secret("") == ""
    assert mask_secret("abc") == "***"
