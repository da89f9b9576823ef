"""
Makruh windows for voluntary prayer:
  - from Fajr until sunrise + 15 minutes
  - sun at zenith, approximated as the few minutes before Zuhr
  - from Asr until Maghrib
Obligatory and missed prayers are not affected. Windows apply all year, Ramadan included.
"""
from datetime import datetime
from typing import List, Optional

from masjid_display.core.models import ForbiddenState, ForbiddenWindow, RawDailyTimes
from masjid_display.core.time_utils import in_minute_window, minute_of_day, parse_hhmm, shift_hhmm

SUNRISE_BUFFER_MINUTES = 15
ZENITH_MINUTES_BEFORE_ZUHR = 5

DAWN_LABEL = "After dawn until sun up"
ZENITH_LABEL = "Sun at zenith"
ASR_LABEL = "After Asr until sunset"


def get_forbidden_windows(
    raw: Optional[RawDailyTimes],
    sunrise_buffer_minutes: int = SUNRISE_BUFFER_MINUTES,
    zenith_minutes_before_zuhr: int = ZENITH_MINUTES_BEFORE_ZUHR,
) -> List[ForbiddenWindow]:
    """Today's windows, earliest first. A window whose source times are missing is left out."""
    if raw is None:
        return []

    windows = []
    if raw.fajr and raw.sunrise:
        windows.append(ForbiddenWindow(
            start=raw.fajr,
            end=shift_hhmm(raw.sunrise, sunrise_buffer_minutes),
            label=DAWN_LABEL,
        ))
    if raw.zuhr:
        windows.append(ForbiddenWindow(
            start=shift_hhmm(raw.zuhr, -zenith_minutes_before_zuhr),
            end=raw.zuhr,
            label=ZENITH_LABEL,
        ))
    # Only the shifted windows may cross midnight; Maghrib before Asr is a bad table
    if raw.asr and raw.maghrib and raw.minutes_for("Asr") < raw.minutes_for("Maghrib"):
        windows.append(ForbiddenWindow(start=raw.asr, end=raw.maghrib, label=ASR_LABEL))
    return windows


def get_current_forbidden_window(
    raw: Optional[RawDailyTimes],
    now: datetime,
    sunrise_buffer_minutes: int = SUNRISE_BUFFER_MINUTES,
    zenith_minutes_before_zuhr: int = ZENITH_MINUTES_BEFORE_ZUHR,
) -> ForbiddenState:
    """Window containing now (start <= now < end), or a not-forbidden state."""
    now_minute = minute_of_day(now)
    for window in get_forbidden_windows(raw, sunrise_buffer_minutes, zenith_minutes_before_zuhr):
        start = parse_hhmm(window.start)
        end = parse_hhmm(window.end)
        if start is None or end is None or start == end:
            continue
        if in_minute_window(start, end, now_minute):
            return ForbiddenState(is_forbidden=True, reason=window.label, ends_at=window.end)
    return ForbiddenState.not_forbidden()
