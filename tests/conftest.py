from __future__ import annotations

import copy
from pathlib import Path

import pytest

from promptsheet.config import CONFIG_ENV_OVERRIDES, PromptSheetConfig
from promptsheet.errors import RemoteReadError, RemoteWriteError


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    config_path = tmp_path / "config.json"
    monkeypatch.setenv("PROMPTSHEET_CONFIG", str(config_path))
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv("PROMPTSHEET_LOG_LEVEL", raising=False)
    return config_path


class FakeSheet:
    """In-memory stand-in for the remote range with full-replace writes."""

    def __init__(self, rows: list[list[str]] | None = None) -> None:
        self.rows: list[list[str]] = copy.deepcopy(rows or [])
        self.reads = 0
        self.writes: list[list[list[str]]] = []
        self.fail_read_status: int | None = None
        self.fail_write_status: int | None = None

    def read_rows(self) -> list[list[str]]:
        self.reads += 1
        if self.fail_read_status is not None:
            raise RemoteReadError("read failed", status=self.fail_read_status)
        return copy.deepcopy(self.rows)

    def write_rows(self, rows: list[list[str]]) -> None:
        self.writes.append(copy.deepcopy(rows))
        if self.fail_write_status is not None:
            raise RemoteWriteError("write failed", status=self.fail_write_status)
        self.rows = copy.deepcopy(rows)


@pytest.fixture
def config() -> PromptSheetConfig:
    return PromptSheetConfig(store_id="sheet-123", access_key="key-abc")


@pytest.fixture
def sheet() -> FakeSheet:
    return FakeSheet()


@pytest.fixture
def make_sheet():
    return FakeSheet
