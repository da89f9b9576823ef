"""
Minute-of-day helpers for "HH:MM" strings. Parse once at the boundary, do integer
arithmetic with mod 1440 wraparound, format back only for output.
"""
import re
from datetime import datetime
from typing import Optional

MINUTES_PER_DAY = 1440
SECONDS_PER_DAY = 86400

TIME_FORMAT_12H = "12h"
TIME_FORMAT_24H = "24h"

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?\s*$")


def parse_hhmm(value: Optional[str]) -> Optional[int]:
    """Parse "H:MM", "HH:MM" or "HH:MM:SS" into minutes since midnight. None if absent or invalid."""
    if value is None or not isinstance(value, str):
        return None
    match = _TIME_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM", wrapping around the day."""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_hhmm(value: Optional[str]) -> Optional[str]:
    minutes = parse_hhmm(value)
    return format_hhmm(minutes) if minutes is not None else None


def shift_hhmm(value: Optional[str], delta_minutes: int) -> Optional[str]:
    """Add delta_minutes (may be negative) to an "HH:MM" value, wrapping at midnight."""
    minutes = parse_hhmm(value)
    if minutes is None:
        return None
    return format_hhmm(minutes + delta_minutes)


def minute_of_day(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def second_of_day(moment: datetime) -> int:
    return moment.hour * 3600 + moment.minute * 60 + moment.second


def in_minute_window(start: int, end: int, now: int) -> bool:
    """Half-open [start, end) test on minutes of day; a window with end <= start spans midnight."""
    if start <= end:
        return start <= now < end
    return now >= start or now < end


def format_display_time(value: Optional[str], time_format: str = TIME_FORMAT_24H) -> str:
    """Display string for an "HH:MM" value. Unparsable values are returned as given."""
    if not value:
        return ""
    minutes = parse_hhmm(value)
    if minutes is None:
        return value
    hours, mins = divmod(minutes, 60)
    if time_format == TIME_FORMAT_12H:
        suffix = "AM" if hours < 12 else "PM"
        hour12 = hours % 12 or 12
        return f"{hour12}:{mins:02d} {suffix}"
    return f"{hours:02d}:{mins:02d}"
