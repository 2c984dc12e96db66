"""Async database engine and session management.

The place store runs on PostgreSQL (asyncpg) in deployments and on SQLite
(aiosqlite) for local runs and tests. ``init_engine`` picks engine options
for each backend.
"""

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the current async engine.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the current session factory.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def init_engine(database_url: str, *, schema: str | None = None, **kwargs: object) -> AsyncEngine:
    """Create and store the async engine and session factory.

    SQLite ``:memory:`` databases are held on a single connection so every
    session sees the same places table. PostgreSQL connections are
    pre-pinged, and ``schema`` is put first on their ``search_path``.

    Args:
        database_url: Async SQLAlchemy connection string.
        schema: Optional PostgreSQL schema for isolated environments.
            Ignored for SQLite.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        The created async engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if schema is not None:
            logger.warning(f"Ignoring database schema {schema!r} for SQLite database")
        if url.database in (None, "", ":memory:"):
            kwargs.setdefault("poolclass", StaticPool)
    else:
        kwargs.setdefault("pool_pre_ping", True)
        if schema is not None:
            connect_args = kwargs.pop("connect_args", {})
            if not isinstance(connect_args, dict):
                msg = "connect_args must be a dict"
                raise TypeError(msg)
            connect_args["server_settings"] = {"search_path": f"{schema},public"}
            kwargs["connect_args"] = connect_args

    _engine = create_async_engine(database_url, **kwargs)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    logger.debug(f"Database engine ready for {url.render_as_string(hide_password=True)}")
    return _engine


async def create_tables() -> None:
    """Create the places table straight from the ORM models."""
    from places_api.models import Place  # noqa: F401
    from places_api.models.base import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose of the async engine and release connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
