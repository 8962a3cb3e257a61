from __future__ import annotations

import logging
from typing import Any

from ..config import DEFAULT_API_BASE, DEFAULT_SHEET_NAME, PromptSheetConfig
from ..errors import RemoteReadError, RemoteWriteError
from . import http_client

logger = logging.getLogger(__name__)

# Row 1 holds the header (Title | Category | Prompt | Tags | Created At).
CELL_RANGE = "A2:E"


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def _coerce_rows(values: Any) -> list[list[str]]:
    if not isinstance(values, list):
        return []
    rows: list[list[str]] = []
    for row in values:
        if not isinstance(row, list):
            rows.append([])
            continue
        rows.append(["" if cell is None else str(cell) for cell in row])
    return rows


class SheetsClient:
    """Reads and bulk-overwrites the prompt range of one spreadsheet."""

    def __init__(
        self,
        store_id: str,
        access_key: str,
        *,
        sheet_name: str = DEFAULT_SHEET_NAME,
        api_base: str = DEFAULT_API_BASE,
        timeout_s: float = 10.0,
    ) -> None:
        self.store_id = store_id
        self.access_key = access_key
        self.sheet_name = sheet_name
        self.api_base = api_base
        self.timeout_s = timeout_s

    @classmethod
    def from_config(cls, config: PromptSheetConfig) -> SheetsClient:
        return cls(
            config.store_id,
            config.access_key,
            sheet_name=config.sheet_name,
            api_base=config.api_base,
            timeout_s=config.request_timeout_s,
        )

    @property
    def range_a1(self) -> str:
        return f"{self.sheet_name}!{CELL_RANGE}"

    def values_url(self, **params: str) -> str:
        path = "/".join(
            [
                "spreadsheets",
                http_client.quote_segment(self.store_id),
                "values",
                http_client.quote_segment(self.range_a1, safe="!:"),
            ]
        )
        query = dict(params)
        query["key"] = self.access_key
        return http_client.build_url(self.api_base, path, query)

    def read_rows(self) -> list[list[str]]:
        url = self.values_url()
        try:
            status, payload = http_client.request_json("GET", url, timeout_s=self.timeout_s)
        except (OSError, ValueError) as exc:
            logger.warning("sheet read failed: %s", http_client.redact_url(url), exc_info=exc)
            raise RemoteReadError(f"Failed to load prompts: {exc}") from exc
        if not _is_success(status):
            logger.warning("sheet read returned %s: %s", status, http_client.redact_url(url))
            raise RemoteReadError(
                f"Failed to load prompts (HTTP {status}). Check the store id and access key.",
                status=status,
            )
        rows = _coerce_rows((payload or {}).get("values"))
        logger.info("sheet read %d rows from %s", len(rows), self.range_a1)
        return rows

    def write_rows(self, rows: list[list[str]]) -> None:
        url = self.values_url(valueInputOption="RAW")
        try:
            status, _payload = http_client.request_json(
                "PUT",
                url,
                body={"values": rows},
                timeout_s=self.timeout_s,
            )
        except (OSError, ValueError) as exc:
            logger.warning("sheet write failed: %s", http_client.redact_url(url), exc_info=exc)
            raise RemoteWriteError(f"Failed to save prompts: {exc}") from exc
        if not _is_success(status):
            logger.warning("sheet write returned %s: %s", status, http_client.redact_url(url))
            raise RemoteWriteError(
                f"Failed to save prompts to the sheet (HTTP {status}).",
                status=status,
            )
        logger.info("sheet wrote %d rows to %s", len(rows), self.range_a1)
