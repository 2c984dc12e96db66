"""Typer CLI root application with serve command."""

import typer

from places_api.core.config import get_settings
from places_api.core.logging import setup_logging

app = typer.Typer(name="places-api", help="Restaurant place cache CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "places_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from places_api.cli.db_cmd import db_app
    from places_api.cli.places_cmd import places_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(places_app, name="places", help="Place cache commands")


_register_subcommands()
