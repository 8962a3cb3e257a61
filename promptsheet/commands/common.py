from __future__ import annotations

import logging
import os
from typing import Any, NoReturn

import typer
from rich import print
from rich.markup import escape

from promptsheet.config import PromptSheetConfig, load_config, read_config_file
from promptsheet.errors import PromptSheetError
from promptsheet.records import Record
from promptsheet.sync_engine import SyncEngine


def configure_logging() -> None:
    level = os.environ.get("PROMPTSHEET_LOG_LEVEL")
    if not level:
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def fail(exc: PromptSheetError) -> NoReturn:
    print(f"[red]{escape(str(exc))}[/red]")
    raise typer.Exit(code=1) from exc


def engine_from_config(config: PromptSheetConfig | None = None) -> SyncEngine:
    read_config_or_exit()
    return SyncEngine(config or load_config())


def loaded_engine() -> SyncEngine:
    engine = engine_from_config()
    try:
        engine.load()
    except PromptSheetError as exc:
        fail(exc)
    return engine


def record_or_exit(engine: SyncEngine, record_id: int) -> Record:
    record = engine.get(record_id)
    if record is None:
        print(f"[red]No prompt with id {record_id}[/red]")
        raise typer.Exit(code=1)
    return record


def print_record_line(record: Record) -> None:
    tag_list = record.tag_list()
    tags = f" [dim]#{escape(' #'.join(tag_list))}[/dim]" if tag_list else ""
    print(
        f"[bold]{record.id:>3}[/bold] {escape(record.title)} "
        f"[cyan]({escape(record.category)})[/cyan]{tags}"
    )


def print_record(record: Record) -> None:
    print(f"[bold]#{record.id} {escape(record.title)}[/bold]")
    print(f"- category: {escape(record.category)}")
    print(f"- tags: {escape(', '.join(record.tag_list())) or '-'}")
    print(f"- created_at: {record.created_at}")
    print("")
    print(escape(record.body))
