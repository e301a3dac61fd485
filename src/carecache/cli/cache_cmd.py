"""CLI commands for inspecting and invalidating the cache.

Usage:
    carecache cache stats
    carecache cache get "clients:1:10:::::::"
    carecache cache delete-prefix clients:
    carecache cache invalidate-tags contracts industries --version v2
    carecache cache invalidate-version v1
    carecache cache clear --yes
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import orjson
import typer
from rich.console import Console
from rich.table import Table

from carecache.cache.errors import CacheUnavailable
from carecache.cache.redis import close_redis, create_cache_store
from carecache.cache.store import CacheStore
from carecache.config import settings

T = TypeVar("T")

app = typer.Typer(help="Inspect and invalidate cached entries", no_args_is_help=True)
console = Console()

VersionOption = typer.Option(None, "--version", "-v", help="Cache version (default: current)")


def store_factory() -> CacheStore:
    """Build the store used by commands (patched in tests)."""
    return create_cache_store(settings)


def _run(action: Callable[[CacheStore], Awaitable[T]]) -> T:
    """Run one async action against a fresh store, mapping outages to exit 1."""

    async def runner() -> T:
        store = store_factory()
        try:
            return await action(store)
        finally:
            await close_redis(store.client)

    try:
        return asyncio.run(runner())
    except CacheUnavailable as e:
        console.print(f"[red]Cache unavailable:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def stats() -> None:
    """Show key and tag counts."""
    result = _run(lambda store: store.get_stats())

    table = Table(title="Cache statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for name, value in result.to_dict().items():
        table.add_row(name, str(value))
    console.print(table)


@app.command()
def get(
    key: str = typer.Argument(..., help="Logical cache key"),
    version: str | None = VersionOption,
) -> None:
    """Print the cached value for KEY as JSON."""
    value: Any = _run(lambda store: store.get(key, version=version))
    if value is None:
        console.print(f"[yellow]Miss:[/yellow] {key}")
        raise typer.Exit(code=2)
    typer.echo(orjson.dumps(value, option=orjson.OPT_INDENT_2).decode())


@app.command()
def delete(
    key: str = typer.Argument(..., help="Logical cache key"),
    version: str | None = VersionOption,
) -> None:
    """Delete one entry."""
    _run(lambda store: store.delete(key, version=version))
    console.print(f"[green]Deleted[/green] {key}")


@app.command("delete-prefix")
def delete_prefix(
    prefix: str = typer.Argument(..., help="Logical key prefix, e.g. 'clients:'"),
    version: str | None = VersionOption,
) -> None:
    """Delete every entry whose key starts with PREFIX."""
    removed = _run(lambda store: store.delete_by_prefix(prefix, version=version))
    console.print(f"[green]Deleted {removed} entries[/green] under {prefix!r}")


@app.command("invalidate-tags")
def invalidate_tags(
    tags: list[str] = typer.Argument(..., help="Tags to invalidate"),
    version: str | None = VersionOption,
) -> None:
    """Delete every entry carrying any of TAGS."""
    removed = _run(lambda store: store.invalidate_by_tags(tags, version=version))
    console.print(f"[green]Invalidated {removed} entries[/green] tagged {', '.join(tags)}")


@app.command("invalidate-version")
def invalidate_version(
    version: str = typer.Argument(..., help="Cache version to drop"),
) -> None:
    """Delete every entry of one cache version."""
    removed = _run(lambda store: store.invalidate_by_version(version))
    console.print(f"[green]Invalidated {removed} entries[/green] of version {version}")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm flushing the backend"),
) -> None:
    """Delete EVERY key in the backend database."""
    if not yes:
        console.print("[red]Refusing to flush without --yes[/red]")
        raise typer.Exit(code=1)
    _run(lambda store: store.clear())
    console.print("[green]Cache flushed[/green]")
