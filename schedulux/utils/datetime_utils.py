"""
Datetime utilities for consistent timezone handling across the engine.
All instants handled by the core are timezone-aware UTC datetimes; local
wall-clock values only exist at the edges (rule times, display strings).
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalise aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse an ISO-8601 string into an aware UTC datetime.
    Handles both 'Z' suffix and explicit offsets; naive values are UTC.

    Raises:
        ValueError: If the string cannot be parsed
    """
    normalized = iso_string.strip().replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(normalized)
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e
    return ensure_utc(dt)


def parse_local_date(date_string: str) -> date:
    """Parse a YYYY-MM-DD calendar date."""
    try:
        return date.fromisoformat(date_string)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date string: {date_string} (expected YYYY-MM-DD)") from e


def to_iso_string(dt: datetime) -> str:
    """ISO-8601 UTC string with a 'Z' suffix, e.g. 2030-01-07T17:00:00Z."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_zone(name: str | None, default: str = "UTC") -> ZoneInfo:
    """Resolve an IANA zone name, falling back to the default for blanks."""
    try:
        return ZoneInfo(name or default)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {name}") from e


def local_to_utc(day: date, wall_clock: time, zone: ZoneInfo) -> datetime:
    """
    Convert a local wall-clock time on a calendar day into a UTC instant.

    Wall-clock times that fall in a DST gap are shifted forward by the gap
    (fold=0), ambiguous times resolve to the first occurrence.
    """
    local = datetime.combine(day, wall_clock.replace(tzinfo=None), tzinfo=zone)
    # Round-trip through UTC so non-existent local times are normalised
    return local.astimezone(timezone.utc)


def local_day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight at the start and end of a calendar day."""
    start = local_to_utc(day, time(0, 0), zone)
    end = local_to_utc(day + timedelta(days=1), time(0, 0), zone)
    return start, end


def iter_dates(start: date, end: date):
    """Yield each calendar date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
