from __future__ import annotations

import json

import typer
from rich import print

from promptsheet.commands.common import engine_from_config, fail, read_config_or_exit
from promptsheet.config import get_config_path, get_env_overrides, load_config, save_credentials
from promptsheet.errors import PromptSheetError


def config_show_cmd(*, as_json: bool) -> None:
    read_config_or_exit()
    config = load_config()
    data = config.redacted()
    if as_json:
        payload = {
            "path": str(get_config_path()),
            "config": data,
            "env_overrides": sorted(get_env_overrides()),
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    print(f"[bold]Config[/bold] {get_config_path()}")
    for key, value in data.items():
        print(f"- {key}: {value}")
    missing = config.missing_keys()
    if missing:
        print(f"[yellow]Missing: {', '.join(missing)}[/yellow]")


def config_set_cmd(
    *,
    store_id: str | None,
    access_key: str | None,
    sheet_name: str | None,
    connect: bool,
) -> None:
    read_config_or_exit()
    current = load_config()
    try:
        path = save_credentials(
            store_id if store_id is not None else current.store_id,
            access_key if access_key is not None else current.access_key,
            sheet_name=sheet_name,
        )
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    print(f"[green]Saved config to {path}[/green]")
    if not connect:
        return
    engine = engine_from_config()
    try:
        records = engine.load()
    except PromptSheetError as exc:
        fail(exc)
    print(f"[green]Connected: {len(records)} prompts[/green]")
