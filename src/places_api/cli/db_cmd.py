"""Database CLI commands: Alembic migrations and a schema bootstrap for local SQLite runs."""

import asyncio

import typer
from loguru import logger

db_app = typer.Typer()

_CONFIG_OPTION = typer.Option("alembic.ini", "--config", "-c", help="Path to alembic.ini")


def _alembic_config(path: str):  # type: ignore[no-untyped-def]
    from alembic.config import Config

    return Config(path)


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    config_path: str = _CONFIG_OPTION,
) -> None:
    """Run database migrations up to the target revision."""
    from alembic import command

    logger.info(f"Upgrading places database to {revision}")
    command.upgrade(_alembic_config(config_path), revision)
    logger.info("Database upgrade complete")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    config_path: str = _CONFIG_OPTION,
) -> None:
    """Roll the database back to the target revision."""
    from alembic import command

    logger.info(f"Downgrading places database to {revision}")
    command.downgrade(_alembic_config(config_path), revision)
    logger.info("Database downgrade complete")


@db_app.command()
def current(config_path: str = _CONFIG_OPTION) -> None:
    """Show the current database migration revision."""
    from alembic import command

    command.current(_alembic_config(config_path), verbose=True)


@db_app.command("create-tables")
def create_tables() -> None:
    """Create all tables directly from the ORM models (local SQLite runs only)."""
    asyncio.run(_create_tables())


async def _create_tables() -> None:
    from places_api.core.config import get_settings
    from places_api.core.database import create_tables as create_orm_tables
    from places_api.core.database import dispose_engine, init_engine

    settings = get_settings()
    if not settings.database_url.startswith("sqlite"):
        typer.echo("create-tables is for SQLite databases; use 'db upgrade' for PostgreSQL.", err=True)
        raise typer.Exit(code=1)

    init_engine(settings.database_url)
    try:
        await create_orm_tables()
        typer.echo("Tables created.")
    finally:
        await dispose_engine()
