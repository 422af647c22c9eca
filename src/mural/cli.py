"""CLI — init, serve, status, board."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from mural.config import Config
from mural.core.board import BoardEntry, BoardService
from mural.core.ranking import BoardFilter
from mural.events.bus import EventBus
from mural.storage.sqlite_store import SQLiteStore


def _require_db(path: str) -> Config:
    config = Config.load(Path(path).expanduser().resolve())
    if not config.db_path.exists():
        click.echo(f"Error: No database at {config.db_path}. Run 'mural init' first.", err=True)
        sys.exit(1)
    return config


@click.group()
@click.version_option(package_name="mural")
def main() -> None:
    """Mural — public suggestion board."""


@main.command()
@click.argument("path", type=click.Path(), default="~/.mural")
def init(path: str) -> None:
    """Initialize a new board workspace."""
    workspace = Path(path).expanduser().resolve()
    config = Config(workspace_path=workspace)

    async def _init() -> None:
        store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
        await store.initialize()
        await store.close()
        config.save()

    asyncio.run(_init())
    click.echo(f"Initialized board at {workspace}")
    click.echo(f"Database: {config.db_path}")
    click.echo(f"Add staff identities to {config.config_file} (staff_emails).")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--transport", type=click.Choice(["stdio"]), default="stdio")
def serve(path: str, transport: str) -> None:
    """Start the MCP server."""
    config = _require_db(path)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    from mural.server import create_server

    server = create_server(str(config.db_path), config)
    server.run(transport=transport)  # type: ignore[arg-type]


@main.command()
@click.argument("path", type=click.Path(exists=True))
def status(path: str) -> None:
    """Show board statistics."""
    config = _require_db(path)

    async def _status() -> dict:
        store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
        try:
            await store.initialize()
            return await store.get_stats()
        finally:
            await store.close()

    stats = asyncio.run(_status())
    click.echo(json.dumps(stats, indent=2))


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--search", default=None, help="Text to find in title or description")
@click.option("--module", default=None, help="Module filter")
@click.option("--status", "status_filter", default=None, help="Status key or label")
@click.option(
    "--sort", default="recent", help="recent | votes | comments (anything else sorts by recent)"
)
@click.option("--all", "include_private", is_flag=True, help="Include private suggestions")
def board(
    path: str,
    search: str | None,
    module: str | None,
    status_filter: str | None,
    sort: str,
    include_private: bool,
) -> None:
    """Show the ranked board."""
    config = _require_db(path)

    async def _board() -> list[BoardEntry]:
        store = SQLiteStore(config.db_path, wal_mode=config.wal_mode)
        try:
            await store.initialize()
            service = BoardService(store, EventBus(), config=config)
            return await service.get_board(
                BoardFilter(text=search, module=module, status=status_filter),
                sort,
                include_private=include_private,
            )
        finally:
            await store.close()

    entries = asyncio.run(_board())

    table = Table(title=f"Suggestions ({len(entries)})")
    table.add_column("", width=2)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Module")
    table.add_column("Status")
    table.add_column("Votes", justify="right")
    table.add_column("Comments", justify="right")
    for entry in entries:
        s = entry.suggestion
        table.add_row(
            "📌" if s.is_pinned else "",
            s.id[:8],
            s.title,
            s.module,
            s.status_label,
            str(s.votes),
            str(s.comments_count),
        )
    Console().print(table)
