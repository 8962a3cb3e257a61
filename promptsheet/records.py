from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

# Remote column order: A=title, B=category, C=body, D=tags, E=created_at.
COLUMNS = ("title", "category", "body", "tags", "created_at")
EDITABLE_FIELDS = ("title", "category", "body", "tags")
REQUIRED_FIELDS = ("title", "category", "body")
SEARCH_FIELDS = ("title", "category", "tags", "body")


def utc_now_iso() -> str:
    now = dt.datetime.now(dt.UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Record:
    """One prompt row.

    ``id`` is the 1-based row position from the last load. It is reassigned
    on every reload and must not be stored or compared across saves.
    """

    id: int
    title: str
    category: str
    body: str
    tags: str
    created_at: str

    def tag_list(self) -> list[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["tag_list"] = self.tag_list()
        return data


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row):
        return ""
    value = row[index]
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def record_from_row(
    index: int,
    row: Sequence[Any],
    *,
    now: Callable[[], str] = utc_now_iso,
) -> Record:
    """Map a remote row to a record; short or odd rows degrade to empty fields."""

    if not isinstance(row, (list, tuple)):
        row = []
    created_at = _cell(row, 4) or now()
    return Record(
        id=index + 1,
        title=_cell(row, 0),
        category=_cell(row, 1),
        body=_cell(row, 2),
        tags=_cell(row, 3),
        created_at=created_at,
    )


def records_from_rows(
    rows: Iterable[Sequence[Any]],
    *,
    now: Callable[[], str] = utc_now_iso,
) -> list[Record]:
    return [record_from_row(index, row, now=now) for index, row in enumerate(rows)]


def record_to_row(record: Record) -> list[str]:
    return [str(getattr(record, column)) for column in COLUMNS]


def records_to_rows(records: Iterable[Record]) -> list[list[str]]:
    return [record_to_row(record) for record in records]


def matches(record: Record, term: str) -> bool:
    needle = term.lower()
    if not needle:
        return True
    return any(needle in getattr(record, field).lower() for field in SEARCH_FIELDS)


def filter_records(records: Iterable[Record], term: str) -> tuple[Record, ...]:
    return tuple(record for record in records if matches(record, term))


def categories(records: Iterable[Record]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for record in records:
        if not record.category or record.category in seen:
            continue
        seen.add(record.category)
        ordered.append(record.category)
    return ordered
