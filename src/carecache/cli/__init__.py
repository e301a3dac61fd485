"""CLI commands for carecache.

Provides command-line interface using Typer:
- carecache serve: Run the cache administration API
- carecache cache ...: Inspect and invalidate cached entries

Usage:
    carecache --help
    carecache serve --port 8080
    carecache cache delete-prefix clients:
"""

import typer

from carecache.cli.cache_cmd import app as cache_app
from carecache.cli.serve import app as serve_app

app = typer.Typer(
    name="carecache",
    help="carecache: tag- and version-aware response cache",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(cache_app, name="cache")


@app.callback()
def callback() -> None:
    """carecache: tag- and version-aware response cache."""


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
