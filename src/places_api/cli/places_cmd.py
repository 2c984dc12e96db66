"""Place cache CLI commands: lookup, stale refresh sweep, and stats."""

import asyncio

import typer

places_app = typer.Typer()


@places_app.command("lookup")
def lookup(
    external_id: str = typer.Argument(..., help="Provider place id"),  # noqa: B008
    provider: str | None = typer.Option(None, "--provider", help="Override the configured provider"),  # noqa: B008
) -> None:
    """Look up a place, fetching it from the provider when stale or unknown."""
    asyncio.run(_lookup(external_id, provider))


@places_app.command("refresh-stale")
def refresh_stale() -> None:
    """Refresh every stale provider-sourced place and wait for the refreshes to finish."""
    asyncio.run(_refresh_stale())


@places_app.command("stats")
def stats() -> None:
    """Show how the place store is populated."""
    asyncio.run(_stats())


async def _lookup(external_id: str, provider_name: str | None) -> None:
    """Async implementation of place lookup."""
    from places_api.core.config import get_settings
    from places_api.core.database import dispose_engine, get_session_factory, init_engine
    from places_api.services.place_service import build_place_cache, lookup_place

    settings = get_settings()
    if provider_name:
        settings = settings.model_copy(update={"places_provider": provider_name})
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        cache = build_place_cache(settings, get_session_factory())
        result = await lookup_place(cache, external_id)
        if result is None:
            typer.echo(f"Place {external_id} not found in cache or provider.", err=True)
            raise typer.Exit(code=1)

        place = result.place
        typer.echo(f"Place: {place.name} ({place.id})")
        typer.echo(f"  Address:   {place.address or '-'}")
        typer.echo(f"  Phone:     {place.phone or '-'}")
        typer.echo(f"  Category:  {place.category}")
        if place.coordinates:
            typer.echo(f"  Lat/Lng:   {place.coordinates.lat}, {place.coordinates.lng}")
        typer.echo(f"  Synced:    {place.last_synced_at or 'never'}")
        typer.echo(f"  Outcome:   {result.metadata.outcome} via {result.metadata.provider}")
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


async def _refresh_stale() -> None:
    """Async implementation of the stale refresh sweep."""
    from places_api.core.background import InProcessTaskRunner
    from places_api.core.config import get_settings
    from places_api.core.database import dispose_engine, get_session_factory, init_engine
    from places_api.services.place_service import build_place_cache, refresh_all_stale

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    runner = InProcessTaskRunner()

    try:
        cache = build_place_cache(settings, get_session_factory(), runner=runner)
        job_ids = await refresh_all_stale(cache)
        await runner.drain()

        typer.echo(f"Attempted {len(job_ids)} stale place refreshes (failures are logged, not retried).")
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e
    finally:
        await dispose_engine()


async def _stats() -> None:
    """Async implementation of cache stats."""
    from places_api.core.config import get_settings
    from places_api.core.database import dispose_engine, get_session_factory, init_engine
    from places_api.lib.places import SqlAlchemyCacheStore, StatsReporter

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        snapshot = await StatsReporter(SqlAlchemyCacheStore(get_session_factory())).snapshot()
        typer.echo(f"Total places:       {snapshot.total}")
        typer.echo(f"  Provider-sourced: {snapshot.external_sourced}")
        typer.echo(f"  Manual:           {snapshot.manual_sourced}")
        typer.echo(f"  Hit rate est.:    {snapshot.hit_rate_estimate:.2%}")
    finally:
        await dispose_engine()
