"""Time-to-live check for provider-synced places."""

from datetime import UTC, datetime, timedelta

DEFAULT_TTL = timedelta(days=7)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_fresh(
    last_synced_at: datetime | None,
    ttl: timedelta = DEFAULT_TTL,
    now: datetime | None = None,
) -> bool:
    """Whether a place synced at ``last_synced_at`` is still within ``ttl``.

    Args:
        last_synced_at: Last successful provider sync, or None if never synced.
        ttl: Trust window.
        now: Reference time; defaults to the current UTC time.

    Returns:
        False for a missing timestamp, otherwise ``now - last_synced_at < ttl``.
    """
    if last_synced_at is None:
        return False
    reference = as_utc(now) if now is not None else datetime.now(UTC)
    return reference - as_utc(last_synced_at) < ttl
