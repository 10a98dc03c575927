"""CLI entry point for deferred-session.

Invoked as::

    deferred-session [OPTIONS] COMMAND [ARGS]...

Commands
--------
- version    — Show version information
- list       — List stored session ids
- show       — Display the managed values of a session
- set        — Set a value in a session
- unset      — Remove a value from a session
- increment  — Increment an integer value in a session
- destroy    — Erase a session
- purge      — Delete sessions idle longer than a limit
"""
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from deferred_session.clock import system_clock
from deferred_session.config import SessionConfig
from deferred_session.store.session_store import SessionStore, StorageTypeConflictError

console = Console()


def _parse_value(raw: str) -> Any:
    """Decode ``raw`` as JSON, falling back to the literal string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _open_store(ctx: click.Context, session_id: str) -> SessionStore:
    """Build a store bound to an existing ``session_id`` or exit with status 1."""
    config: SessionConfig = ctx.obj["config"]
    backend = ctx.obj["backend"]
    if not backend.exists(session_id):
        console.print(f"[red]Session not found:[/red] {session_id}")
        sys.exit(1)
    host = config.build_host(
        cookies={config.session_name: session_id}, backend=backend, clock=ctx.obj["clock"]
    )
    return config.build_store(host, clock=ctx.obj["clock"])


def _commit(store: SessionStore) -> None:
    try:
        store.commit()
    except StorageTypeConflictError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file.",
)
@click.option(
    "--storage",
    default=None,
    type=click.Choice(["memory", "filesystem", "sqlite"], case_sensitive=False),
    help="Storage backend to use (overrides the config file).",
)
@click.option("--storage-dir", default=None, help="Directory for the filesystem backend.")
@click.option("--db-path", default=None, help="Path to the SQLite database.")
@click.option("--storage-key", default=None, help="Slot holding the managed values.")
@click.version_option(package_name="deferred-session")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    storage: str | None,
    storage_dir: str | None,
    db_path: str | None,
    storage_key: str | None,
) -> None:
    """Inspect and edit deferred session data."""
    config = SessionConfig.from_yaml(config_path) if config_path else SessionConfig()
    overrides: dict[str, Any] = {}
    if storage:
        overrides["backend"] = storage.lower()
    if storage_dir:
        overrides["storage_dir"] = Path(storage_dir)
    if db_path:
        overrides["db_path"] = Path(db_path)
    if storage_key:
        overrides["storage_key"] = storage_key
    if overrides:
        config = SessionConfig.model_validate({**config.model_dump(), **overrides})

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    if "backend" not in ctx.obj:
        ctx.obj["backend"] = config.build_backend()
    ctx.obj.setdefault("clock", system_clock)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from deferred_session import __version__

    console.print(f"[bold]deferred-session[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# list / show
# ---------------------------------------------------------------------------


@cli.command(name="list")
@click.option("--limit", default=50, show_default=True, help="Maximum sessions to show.")
@click.pass_context
def list_command(ctx: click.Context, limit: int) -> None:
    """List stored session ids."""
    backend = ctx.obj["backend"]
    session_ids = sorted(backend.list())
    if not session_ids:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    table = Table(title="Sessions", show_lines=False)
    table.add_column("Session ID", style="cyan")
    table.add_column("Last saved (UTC)", style="dim")
    for session_id in session_ids[:limit]:
        saved = datetime.fromtimestamp(backend.saved_at(session_id), tz=timezone.utc)
        table.add_row(session_id, saved.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)
    console.print(f"\n[dim]Showing {min(limit, len(session_ids))} of {len(session_ids)} sessions.[/dim]")


@cli.command(name="show")
@click.argument("session_id")
@click.option("--json-output", is_flag=True, help="Output raw JSON instead of a table.")
@click.pass_context
def show_command(ctx: click.Context, session_id: str, json_output: bool) -> None:
    """Display the managed values stored for SESSION_ID."""
    store = _open_store(ctx, session_id)
    try:
        values = {key: store.get(key) for key in store.keys()}
    except StorageTypeConflictError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(values, indent=2, sort_keys=True, default=str))
        return

    if not values:
        console.print(f"[yellow]No values stored under {store.storage_key!r}.[/yellow]")
        return

    table = Table(title=f"Session {session_id[:8]}", show_lines=True)
    table.add_column("Key", style="bold cyan")
    table.add_column("Type", style="dim")
    table.add_column("Value")
    for key in sorted(values):
        value = values[key]
        table.add_row(key, type(value).__name__, json.dumps(value, default=str))
    console.print(table)


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


@cli.command(name="set")
@click.argument("session_id")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_command(ctx: click.Context, session_id: str, key: str, value: str) -> None:
    """Set KEY to VALUE in SESSION_ID.  VALUE is parsed as JSON when possible."""
    store = _open_store(ctx, session_id)
    store.set(key, _parse_value(value))
    _commit(store)
    console.print(f"[green]Set[/green] {key} in {session_id}")


@cli.command(name="unset")
@click.argument("session_id")
@click.argument("key")
@click.pass_context
def unset_command(ctx: click.Context, session_id: str, key: str) -> None:
    """Remove KEY from SESSION_ID."""
    store = _open_store(ctx, session_id)
    store.unset(key)
    _commit(store)
    console.print(f"[green]Unset[/green] {key} in {session_id}")


@cli.command(name="increment")
@click.argument("session_id")
@click.argument("key")
@click.option("--by", default=1, show_default=True, type=int, help="Amount to add.")
@click.pass_context
def increment_command(ctx: click.Context, session_id: str, key: str, by: int) -> None:
    """Increment the integer KEY in SESSION_ID."""
    store = _open_store(ctx, session_id)
    store.increment(key, by)
    _commit(store)
    console.print(f"[green]Incremented[/green] {key} by {by} in {session_id}")


@cli.command(name="destroy")
@click.argument("session_id")
@click.confirmation_option(prompt="Erase this session?")
@click.pass_context
def destroy_command(ctx: click.Context, session_id: str) -> None:
    """Erase SESSION_ID and all of its data."""
    store = _open_store(ctx, session_id)
    store.destroy()
    console.print(f"[green]Destroyed[/green] {session_id}")


# ---------------------------------------------------------------------------
# purge
# ---------------------------------------------------------------------------


@cli.command(name="purge")
@click.option(
    "--max-idle",
    default=None,
    type=click.IntRange(min=1),
    help="Idle limit in seconds.  Defaults to max_idle from the config file.",
)
@click.pass_context
def purge_command(ctx: click.Context, max_idle: int | None) -> None:
    """Delete every session not saved within the idle limit."""
    config: SessionConfig = ctx.obj["config"]
    limit = max_idle if max_idle is not None else config.max_idle
    if limit is None:
        console.print("[red]Error:[/red] no idle limit; pass --max-idle or set max_idle.")
        sys.exit(1)
    purged = ctx.obj["backend"].purge(ctx.obj["clock"]() - limit)
    console.print(f"[green]Purged[/green] {len(purged)} idle session(s).")


if __name__ == "__main__":
    cli()
