from __future__ import annotations

from pathlib import Path

import typer
from rich import print

from . import __version__
from .commands.common import configure_logging, read_config_or_exit
from .commands.config_cmds import config_set_cmd, config_show_cmd
from .commands.prompt_cmds import (
    add_cmd,
    categories_cmd,
    copy_cmd,
    delete_cmd,
    edit_cmd,
    list_cmd,
    show_cmd,
)
from .config import load_config
from .viewer import port_in_use, start_viewer

app = typer.Typer(help="promptsheet: prompt library stored in a spreadsheet")
config_app = typer.Typer(help="Store id and access key")
app.add_typer(config_app, name="config")


@app.callback()
def main() -> None:
    configure_logging()


@app.command()
def version() -> None:
    """Print the installed version."""

    print(__version__)


@config_app.command("show")
def config_show(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Show the effective config (access key masked)."""

    config_show_cmd(as_json=as_json)


@config_app.command("set")
def config_set(
    store_id: str = typer.Option(None, "--store-id", help="Spreadsheet id"),
    access_key: str = typer.Option(None, "--access-key", help="API access key"),
    sheet_name: str = typer.Option(None, "--sheet-name", help="Sheet (tab) name"),
    connect: bool = typer.Option(True, help="Load prompts after saving"),
) -> None:
    """Save credentials and connect."""

    config_set_cmd(
        store_id=store_id,
        access_key=access_key,
        sheet_name=sheet_name,
        connect=connect,
    )


@app.command("list")
def list_prompts(
    search: str = typer.Option("", "--search", "-s", help="Filter by title/category/tags/body"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Load prompts from the sheet and list them."""

    list_cmd(search=search, as_json=as_json)


@app.command()
def reload(
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Reload prompts from the sheet."""

    list_cmd(search="", as_json=as_json)


@app.command()
def categories() -> None:
    """List prompt categories."""

    categories_cmd()


@app.command()
def show(record_id: int = typer.Argument(..., help="Prompt id from `list`")) -> None:
    """Show one prompt."""

    show_cmd(record_id=record_id)


@app.command()
def copy(record_id: int = typer.Argument(..., help="Prompt id from `list`")) -> None:
    """Print a prompt body as-is (pipe into pbcopy, xclip, ...)."""

    copy_cmd(record_id=record_id)


def _body_text(body: str | None, body_file: Path | None) -> str | None:
    if body_file is None:
        return body
    try:
        return body_file.read_text()
    except OSError as exc:
        print(f"[red]Failed to read {body_file}: {exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def add(
    title: str = typer.Option("", "--title", "-t", help="Title"),
    category: str = typer.Option("", "--category", "-c", help="Category"),
    body: str = typer.Option("", "--body", "-b", help="Prompt text"),
    body_file: Path = typer.Option(None, "--body-file", help="Read prompt text from a file"),
    tags: str = typer.Option("", "--tags", help="Comma-separated tags"),
) -> None:
    """Create a prompt."""

    add_cmd(
        title=title,
        category=category,
        body=_body_text(body, body_file) or "",
        tags=tags,
    )


@app.command()
def edit(
    record_id: int = typer.Argument(..., help="Prompt id from `list`"),
    title: str = typer.Option(None, "--title", "-t", help="Title"),
    category: str = typer.Option(None, "--category", "-c", help="Category"),
    body: str = typer.Option(None, "--body", "-b", help="Prompt text"),
    body_file: Path = typer.Option(None, "--body-file", help="Read prompt text from a file"),
    tags: str = typer.Option(None, "--tags", help="Comma-separated tags"),
) -> None:
    """Update fields of a prompt."""

    edit_cmd(
        record_id=record_id,
        title=title,
        category=category,
        body=_body_text(body, body_file),
        tags=tags,
    )


@app.command()
def delete(
    record_id: int = typer.Argument(..., help="Prompt id from `list`"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a prompt."""

    delete_cmd(record_id=record_id, yes=yes)


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind host (default from config)"),
    port: int = typer.Option(None, help="Bind port (default from config)"),
) -> None:
    """Run the browser UI."""

    read_config_or_exit()
    config = load_config()
    host = host or config.viewer_host
    port = port or config.viewer_port
    if port_in_use(host, port):
        print(f"[yellow]Port {port} on {host} already in use[/yellow]")
        raise typer.Exit(code=1)
    print(f"[green]Viewer at http://{host}:{port}[/green]")
    start_viewer(host, port, config=config)


if __name__ == "__main__":
    app()
