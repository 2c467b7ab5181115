"""CLI for walrus-profiles."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_settings
from .errors import (
    ConfigurationError,
    DecodeError,
    NotFoundError,
    StorageError,
)
from .models import ProfilePatch, UserProfile
from .profile_store import ProfileStore
from .signer import SigningIdentity


app = typer.Typer(help="""\
Store user profiles as immutable blobs on Walrus. Every store and update
prints a new blob id; old ids stay readable.""")

console = Console()
err_console = Console(stderr=True)

# Exit codes
EXIT_USAGE = 1
EXIT_CONFIG = 2
EXIT_NOT_FOUND = 3
EXIT_DECODE = 4
EXIT_STORAGE = 5

T = TypeVar("T")


def _fail(message: str, code: int) -> None:
    err_console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(code)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _run(ctx: typer.Context, operation: Callable[[ProfileStore], Awaitable[T]]) -> T:
    """Open a store, run one operation and map errors to exit codes."""
    async def _go() -> T:
        settings = load_settings(ctx.obj.get("config"))
        async with ProfileStore(settings=settings) as store:
            return await operation(store)

    try:
        return asyncio.run(_go())
    except ConfigurationError as e:
        _fail(f"Configuration error: {e}", EXIT_CONFIG)
    except NotFoundError as e:
        _fail(str(e), EXIT_NOT_FOUND)
    except DecodeError as e:
        _fail(str(e), EXIT_DECODE)
    except StorageError as e:
        _fail(f"Storage error: {e}", EXIT_STORAGE)


def _read_json(source: str) -> Dict[str, Any]:
    """Read a JSON object from a file path or '-' for stdin."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text()
    except OSError as e:
        _fail(f"Cannot read {source}: {e}", EXIT_USAGE)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in {source}: {e}", EXIT_USAGE)
    if not isinstance(data, dict):
        _fail(f"Expected a JSON object in {source}", EXIT_USAGE)
    return data


def _parse_assignments(assignments: List[str]) -> Dict[str, str]:
    changes = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            _fail(f"Invalid --set value '{item}' (expected field=value)", EXIT_USAGE)
        changes[key.strip()] = value
    return changes


def _profile_table(profile: UserProfile, blob_id: str) -> Table:
    table = Table(title=f"Profile {blob_id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in profile.to_dict().items():
        table.add_row(key, str(value))
    return table


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML settings file (default: ./walrus-profiles.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure settings and logging for every command."""
    _configure_logging(verbose)
    ctx.obj = {"config": config}


@app.command()
def store(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Profile JSON file, or '-' for stdin"),
    stamp: bool = typer.Option(False, "--stamp", help="Reset createdAt/updatedAt to now"),
):
    """Store a profile and print its blob id.

    Missing timestamps are set to the current time.

    Examples:
        walrus-profiles store profile.json
        cat profile.json | walrus-profiles store -
    """
    data = _read_json(source)
    if stamp:
        data.pop("createdAt", None)
        data.pop("updatedAt", None)
    try:
        profile = UserProfile.new(data)
    except ValidationError as e:
        _fail(f"Invalid profile: {e}", EXIT_USAGE)

    blob_id = _run(ctx, lambda s: s.store(profile))
    err_console.print(f"[green]✓[/green] Stored profile for {profile.username}")
    typer.echo(blob_id)


@app.command()
def get(
    ctx: typer.Context,
    blob_id: str = typer.Argument(..., help="Blob id returned by store/update"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Retrieve a profile by blob id."""
    profile = _run(ctx, lambda s: s.retrieve(blob_id))
    if profile is None:
        _fail(f"Profile not found: {blob_id}", EXIT_NOT_FOUND)

    if as_json:
        typer.echo(json.dumps(profile.to_dict(), indent=2, sort_keys=True))
    else:
        console.print(_profile_table(profile, blob_id))


@app.command()
def update(
    ctx: typer.Context,
    blob_id: str = typer.Argument(..., help="Blob id of the profile to update"),
    assignments: List[str] = typer.Option(
        [], "--set", "-s", help="Field to overwrite, as field=value (repeatable)"
    ),
    patch_file: Optional[str] = typer.Option(
        None, "--file", "-f", help="JSON file with fields to overwrite"
    ),
):
    """Update a profile and print the new blob id.

    The old blob id keeps pointing at the old profile.

    Examples:
        walrus-profiles update <id> --set firstname=Johnny
        walrus-profiles update <id> --file changes.json
    """
    changes: Dict[str, Any] = _read_json(patch_file) if patch_file else {}
    changes.update(_parse_assignments(assignments))
    if not changes:
        _fail("Nothing to update (use --set or --file)", EXIT_USAGE)
    try:
        patch = ProfilePatch.model_validate(changes)
    except ValidationError as e:
        _fail(f"Invalid update: {e}", EXIT_USAGE)

    new_id = _run(ctx, lambda s: s.update(blob_id, patch))
    err_console.print(f"[green]✓[/green] Updated {blob_id}")
    typer.echo(new_id)


@app.command()
def search(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Username to look for"),
):
    """Search profiles by username (requires a search index)."""
    profiles = _run(ctx, lambda s: s.search_by_username(username))
    if not profiles:
        console.print("[yellow]No profiles found[/yellow] [dim](search requires an index)[/dim]")
    for profile in profiles:
        console.print(f"{profile.username} <{profile.email}>")


@app.command(name="list")
def list_profiles(ctx: typer.Context):
    """List all stored profiles (requires a search index)."""
    profiles = _run(ctx, lambda s: s.list_all())
    if not profiles:
        console.print("[yellow]No profiles found[/yellow] [dim](listing requires an index)[/dim]")
    for profile in profiles:
        console.print(f"{profile.username} <{profile.email}>")


@app.command()
def whoami():
    """Print the address that owns stored blobs."""
    try:
        identity = SigningIdentity.from_env()
    except ConfigurationError as e:
        _fail(f"Configuration error: {e}", EXIT_CONFIG)
    typer.echo(identity.address)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
