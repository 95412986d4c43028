"""UTC-everywhere time handling plus the calendar helpers reports rely on.

Stored timestamps are always UTC. Calendar questions ("is this order from
this month?") are answered in the workshop's display timezone, converted at
the boundary with to_local().
"""

import calendar
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

END_OF_DAY = time(23, 59, 59, 999000)


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, raising ValueError for unknown names."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert UTC datetime to local timezone for display.

    ONLY use this at display boundaries - when rendering for humans or
    bucketing by calendar day/month. Internal operations stay in UTC.

    Args:
        dt: UTC datetime
        tz_name: IANA timezone name (e.g., "America/Sao_Paulo")

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )
    return dt.astimezone(get_zone(tz_name))


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to UTC datetime.

    Raises ValueError if string has no timezone info.
    """
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return to_utc(dt)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """
    Move a (year, month) pair by delta months, rolling over year boundaries.

    shift_month(2024, 1, -1) == (2023, 12)
    """
    index = year * 12 + (month - 1) + delta
    new_year, zero_based_month = divmod(index, 12)
    return new_year, zero_based_month + 1


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def start_of_day(day: date, tz_name: str) -> datetime:
    """00:00:00.000 of a calendar day in the given timezone."""
    return datetime.combine(day, time.min, tzinfo=get_zone(tz_name))


def end_of_day(day: date, tz_name: str) -> datetime:
    """23:59:59.999 of a calendar day in the given timezone."""
    return datetime.combine(day, END_OF_DAY, tzinfo=get_zone(tz_name))
