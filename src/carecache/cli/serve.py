"""CLI command for running the cache administration API.

Usage:
    carecache serve
    carecache serve --port 8080 --host 0.0.0.0
    carecache serve --reload --log-level debug
"""

from __future__ import annotations

import typer

from carecache.config import settings

app = typer.Typer(help="Run the cache administration API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of worker processes"),
    log_level: str = typer.Option(
        "info", "--log-level", "-l", help="Log level: debug, info, warning, error"
    ),
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    workers_effective = workers if not reload else 1  # Reload requires single worker

    typer.echo(f"Starting {settings.app_name} on {host}:{port} (workers={workers_effective})")

    uvicorn.run(
        app="carecache.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers_effective,
        log_level=log_level.lower(),
    )
