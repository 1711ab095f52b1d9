from datetime import date, datetime, time

from weeklyfocus.core.constants import NOT_CLOCKED


def floor_minutes(start: datetime, end: datetime) -> int:
    """
    Whole minutes elapsed from `start` to `end`, rounded down.
    Example: 09:00 -> 17:30:59 gives 510. Negative spans stay negative;
    callers decide whether to clamp or reject.
    """
    return int((end - start).total_seconds() // 60)


def start_of_day(value) -> datetime:
    """Midnight of the day `value` falls on (accepts date or datetime)."""
    if isinstance(value, datetime):
        return value.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime.combine(value, time.min)


def same_day(a: datetime, b) -> bool:
    """Calendar-day equality in the local (naive) clock."""
    day_b = b.date() if isinstance(b, datetime) else b
    return a.date() == day_b


def format_duration(total_minutes: int) -> str:
    """
    Convert minutes -> human readable text.
    Example: 75 -> '1 hour 15 minutes', 30 -> '30 minutes'
    """
    hours = total_minutes // 60
    minutes = total_minutes % 60
    minute_part = f"{minutes} minute" + ("" if minutes == 1 else "s")
    if hours > 0:
        hour_part = f"{hours} hour" + ("" if hours == 1 else "s")
        return f"{hour_part} {minute_part}"
    return minute_part


def hhmm_to_time(hhmm: str):
    """Parse time strings into datetime.time.

    Accepts common formats:
      - 'HH:MM' (24h)
      - 'HH:MM:SS' (24h)
      - 'H:MM AM/PM' (12h), case-insensitive
      - 'H AM/PM'

    Returns None for empty strings.
    """
    if hhmm is None:
        return None
    s = hhmm.strip()
    if s == "":
        return None

    candidates = [
        "%H:%M",
        "%H:%M:%S",
        "%I:%M %p",
        "%I %p",
    ]
    for fmt in candidates:
        try:
            return datetime.strptime(s, fmt).time()
        except ValueError:
            continue
    raise ValueError("Time must be in formats like 'HH:MM' or '10:00 AM'")


def time_to_hhmm(t) -> str | None:
    """Format datetime.time / datetime -> 'HH:MM'. Returns None if t is None."""
    if t is None:
        return None
    return f"{t.hour:02d}:{t.minute:02d}"


def clock_display(dt: datetime | None) -> str:
    """'HH:MM' for a clock time, or the not-clocked marker."""
    if dt is None:
        return NOT_CLOCKED
    return time_to_hhmm(dt)


def on_day(day: date, t: time) -> datetime:
    """Attach a wall-clock time to a calendar day."""
    return datetime.combine(day, t)


def now_local(tz_name: str | None = None) -> datetime:
    """Current wall-clock time as a naive datetime in the configured zone.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is IANA tz name (e.g., 'America/New_York'): use that.

    Records are stored naive in this zone so that day and week boundaries
    are computed in one consistent clock.
    """
    if tz_name and tz_name != "local":
        from zoneinfo import ZoneInfo
        return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
    return datetime.now()


def to_local_naive(dt: datetime, tz_name: str | None = None) -> datetime:
    """Convert an aware datetime into naive local time; naive input is kept.

    - If `tz_name` is 'local' or None: use system local timezone.
    - If `tz_name` is IANA tz name: use that.
    """
    if dt.tzinfo is None:
        return dt
    if tz_name and tz_name != "local":
        from zoneinfo import ZoneInfo
        return dt.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)
    return dt.astimezone().replace(tzinfo=None)
