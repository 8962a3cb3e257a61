from __future__ import annotations

import contextlib
import dataclasses
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .config import PromptSheetConfig
from .errors import ConfigMissing, PromptSheetError, ValidationError
from .records import (
    EDITABLE_FIELDS,
    REQUIRED_FIELDS,
    Record,
    categories,
    filter_records,
    records_from_rows,
    records_to_rows,
    utc_now_iso,
)
from .sheets.client import SheetsClient

logger = logging.getLogger(__name__)


class RowStore(Protocol):
    def read_rows(self) -> list[list[str]]: ...

    def write_rows(self, rows: list[list[str]]) -> None: ...


@dataclass(frozen=True)
class Snapshot:
    records: tuple[Record, ...] = ()
    search_term: str = ""
    view: tuple[Record, ...] = ()


def _snapshot(records: Sequence[Record], search_term: str) -> Snapshot:
    records = tuple(records)
    return Snapshot(
        records=records,
        search_term=search_term,
        view=filter_records(records, search_term),
    )


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}", fields=unknown)
    return {key: "" if value is None else str(value) for key, value in fields.items()}


def _blank_required(fields: Mapping[str, str], required: Sequence[str]) -> list[str]:
    return [key for key in required if not fields.get(key, "").strip()]


class SyncEngine:
    """Keeps the local prompt list in step with the remote sheet.

    Every mutation computes the full next collection, overwrites the remote
    range with it, then reloads so ids and timestamps come from the remote
    copy. Nothing here serializes concurrent callers: two engines working
    from the same stale collection will overwrite each other's writes.
    """

    def __init__(
        self,
        config: PromptSheetConfig,
        client: RowStore | None = None,
        *,
        now: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.config = config
        self._client = client
        self._now = now
        self._state = Snapshot()
        self.error = ""
        self.loading = False

    @property
    def client(self) -> RowStore:
        if self._client is None:
            self._client = SheetsClient.from_config(self.config)
        return self._client

    def reconfigure(self, config: PromptSheetConfig, client: RowStore | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def state(self) -> Snapshot:
        return self._state

    @property
    def records(self) -> tuple[Record, ...]:
        return self._state.records

    @property
    def view(self) -> tuple[Record, ...]:
        return self._state.view

    @property
    def search_term(self) -> str:
        return self._state.search_term

    @contextlib.contextmanager
    def _surface_errors(self) -> Iterator[None]:
        try:
            yield
        except PromptSheetError as exc:
            self.error = str(exc)
            raise

    def _require_config(self) -> None:
        missing = self.config.missing_keys()
        if missing:
            raise ConfigMissing(missing)

    def get(self, record_id: int) -> Record | None:
        for record in self._state.records:
            if record.id == record_id:
                return record
        return None

    def categories(self) -> list[str]:
        return categories(self._state.records)

    def filter(self, term: str) -> tuple[Record, ...]:
        self._state = _snapshot(self._state.records, term or "")
        return self._state.view

    def load(self) -> tuple[Record, ...]:
        with self._surface_errors():
            self._require_config()
            self.loading = True
            self.error = ""
            try:
                rows = self.client.read_rows()
            finally:
                self.loading = False
            records = records_from_rows(rows, now=self._now)
            self._state = _snapshot(records, self._state.search_term)
            logger.info("loaded %d prompts", len(records))
            return self._state.records

    def save(self, next_records: Sequence[Record]) -> tuple[Record, ...]:
        with self._surface_errors():
            self._require_config()
            # No rollback on failure: local state stays ahead of the remote
            # until the next successful load.
            self._state = _snapshot(next_records, self._state.search_term)
            self.client.write_rows(records_to_rows(next_records))
            logger.info("saved %d prompts", len(next_records))
        return self.load()

    def create(self, fields: Mapping[str, Any]) -> tuple[Record, ...]:
        with self._surface_errors():
            cleaned = _clean_fields(fields)
            missing = _blank_required(cleaned, REQUIRED_FIELDS)
            if missing:
                raise ValidationError(
                    f"Fill in the required fields: {', '.join(missing)}", fields=missing
                )
            record = Record(
                id=len(self._state.records) + 1,
                title=cleaned["title"],
                category=cleaned["category"],
                body=cleaned["body"],
                tags=cleaned.get("tags", ""),
                created_at=self._now(),
            )
        return self.save([*self._state.records, record])

    def update(self, record_id: int, fields: Mapping[str, Any]) -> tuple[Record, ...]:
        with self._surface_errors():
            cleaned = _clean_fields(fields)
            blank = _blank_required(cleaned, [key for key in REQUIRED_FIELDS if key in cleaned])
            if blank:
                raise ValidationError(
                    f"Fill in the required fields: {', '.join(blank)}", fields=blank
                )
        next_records = [
            dataclasses.replace(record, **cleaned) if record.id == record_id else record
            for record in self._state.records
        ]
        return self.save(next_records)

    def delete(self, record_id: int) -> tuple[Record, ...]:
        next_records = [record for record in self._state.records if record.id != record_id]
        return self.save(next_records)
