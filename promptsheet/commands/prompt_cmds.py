from __future__ import annotations

import json

import typer
from rich import print

from promptsheet.commands.common import (
    fail,
    loaded_engine,
    print_record,
    print_record_line,
    record_or_exit,
)
from promptsheet.errors import PromptSheetError
from promptsheet.sync_engine import SyncEngine


def _print_view(engine: SyncEngine, *, as_json: bool) -> None:
    if as_json:
        payload = {
            "items": [record.to_dict() for record in engine.view],
            "total": len(engine.records),
            "search": engine.search_term,
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    if not engine.view:
        print("[yellow]No prompts found[/yellow]")
        return
    for record in engine.view:
        print_record_line(record)
    if engine.search_term:
        print(f"[dim]{len(engine.view)} of {len(engine.records)} prompts[/dim]")


def list_cmd(*, search: str, as_json: bool) -> None:
    engine = loaded_engine()
    engine.filter(search)
    _print_view(engine, as_json=as_json)


def categories_cmd() -> None:
    engine = loaded_engine()
    for category in engine.categories():
        typer.echo(category)


def show_cmd(*, record_id: int) -> None:
    engine = loaded_engine()
    print_record(record_or_exit(engine, record_id))


def copy_cmd(*, record_id: int) -> None:
    engine = loaded_engine()
    typer.echo(record_or_exit(engine, record_id).body)


def add_cmd(*, title: str, category: str, body: str, tags: str) -> None:
    engine = loaded_engine()
    try:
        engine.create({"title": title, "category": category, "body": body, "tags": tags})
    except PromptSheetError as exc:
        fail(exc)
    print(f"[green]Created prompt ({len(engine.records)} total)[/green]")


def edit_cmd(
    *,
    record_id: int,
    title: str | None,
    category: str | None,
    body: str | None,
    tags: str | None,
) -> None:
    engine = loaded_engine()
    record_or_exit(engine, record_id)
    fields = {
        key: value
        for key, value in {
            "title": title,
            "category": category,
            "body": body,
            "tags": tags,
        }.items()
        if value is not None
    }
    if not fields:
        print("[yellow]Nothing to update[/yellow]")
        return
    try:
        engine.update(record_id, fields)
    except PromptSheetError as exc:
        fail(exc)
    print(f"[green]Updated prompt {record_id}[/green]")


def delete_cmd(*, record_id: int, yes: bool) -> None:
    engine = loaded_engine()
    record = record_or_exit(engine, record_id)
    if not yes and not typer.confirm(f"Delete prompt {record_id} ({record.title})?"):
        raise typer.Exit(code=1)
    try:
        engine.delete(record_id)
    except PromptSheetError as exc:
        fail(exc)
    print(f"[green]Deleted prompt ({len(engine.records)} remaining)[/green]")
