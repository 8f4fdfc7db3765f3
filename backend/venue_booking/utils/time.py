import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    return utc_now().replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_time_of_day(value: str, *, allow_end_of_day: bool = False) -> int:
    """Parse ``HH:MM`` into minutes since midnight.

    ``24:00`` is only accepted when ``allow_end_of_day`` is set, since it can
    close an interval but never open one.
    """
    match = _HHMM.match(value)
    if match is None:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if allow_end_of_day and hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid time {value!r}, hours 00-23 and minutes 00-59")
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    if minutes < 0 or minutes > MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def local_now(tz_name: str, now: datetime | None = None) -> datetime:
    current = now if now is not None else utc_now()
    return current.astimezone(ZoneInfo(tz_name))


def local_bounds(day: date, start_minute: int, end_minute: int, tz_name: str) -> tuple[datetime, datetime]:
    """Aware start/end datetimes of a time-of-day interval on ``day``."""
    tz = ZoneInfo(tz_name)
    midnight = datetime.combine(day, time(0, 0), tzinfo=tz)
    return midnight + timedelta(minutes=start_minute), midnight + timedelta(minutes=end_minute)


def month_range(month: str, months: int = 1) -> tuple[date, date]:
    """First and last calendar date covered by ``months`` months from ``YYYY-MM``."""
    try:
        year, mon = (int(part) for part in month.split("-"))
        first = date(year, mon, 1)
    except ValueError as exc:
        raise ValueError(f"invalid month {month!r}, expected YYYY-MM") from exc
    if months < 1:
        raise ValueError("months must be >= 1")
    index = first.year * 12 + first.month - 1 + months
    after = date(index // 12, index % 12 + 1, 1)
    return first, after - timedelta(days=1)


def iter_dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
