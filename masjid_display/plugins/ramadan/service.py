"""
Ramadan state for one tick.

The Hijri date only changes with the Gregorian day, so HijriDayCache converts once per
day; the fasting flag and the Iftar/Suhoor countdowns are rebuilt from the clock every tick.
"""
from datetime import date, datetime
from typing import Callable, Optional

from masjid_display.core.countdown import build_countdown
from masjid_display.core.models import RamadanState, RawDailyTimes
from masjid_display.core.time_utils import (
    TIME_FORMAT_24H,
    format_display_time,
    minute_of_day,
    parse_hhmm,
    shift_hhmm,
)
from .hijri import parse_hijri_string, to_hijri_string

DEFAULT_IMSAK_OFFSET_MINUTES = 5
# Day shown when Ramadan is forced on outside the real month
FORCED_RAMADAN_DAY = 15


class HijriDayCache:
    def __init__(self, converter: Callable[[date], Optional[str]] = to_hijri_string):
        self._converter = converter
        self._day: Optional[date] = None
        self._text: Optional[str] = None

    def get(self, day: date) -> Optional[str]:
        """Hijri string for day; converted only when day differs from the last call."""
        if day != self._day:
            self._text = self._converter(day)
            self._day = day
        return self._text


def derive_ramadan_state(
    raw: Optional[RawDailyTimes],
    now: datetime,
    hijri_text: Optional[str],
    override: Optional[bool] = None,
    imsak_offset_minutes: int = DEFAULT_IMSAK_OFFSET_MINUTES,
    time_format: str = TIME_FORMAT_24H,
    show_seconds: bool = True,
) -> RamadanState:
    """
    override True/False wins over the Hijri month; None means detect. An unparsable
    Hijri date counts as not Ramadan.
    """
    hijri = parse_hijri_string(hijri_text)
    in_real_month = hijri is not None and hijri.is_ramadan
    is_ramadan = in_real_month if override is None else override
    if not is_ramadan:
        return RamadanState(hijri_date=hijri_text)

    fajr = raw.fajr if raw else None
    maghrib = raw.maghrib if raw else None
    imsak = shift_hhmm(fajr, -imsak_offset_minutes)

    now_minute = minute_of_day(now)
    fajr_minute = parse_hhmm(fajr)
    maghrib_minute = parse_hhmm(maghrib)
    is_fasting = (
        fajr_minute is not None
        and maghrib_minute is not None
        and fajr_minute <= now_minute < maghrib_minute
    )

    time_to_iftar = None
    if is_fasting:
        time_to_iftar = build_countdown("Iftar", "Maghrib", maghrib, "iftar", now, show_seconds=show_seconds)
    time_to_suhoor_end = None
    if fajr_minute is not None and now_minute < fajr_minute:
        time_to_suhoor_end = build_countdown("Suhoor", "Fajr", fajr, "suhoor", now, show_seconds=show_seconds)

    return RamadanState(
        is_ramadan=True,
        ramadan_day=hijri.day if in_real_month else FORCED_RAMADAN_DAY,
        hijri_date=hijri_text,
        suhoor_end_time=fajr,
        iftar_time=maghrib,
        imsak_time=imsak,
        imsak_display_time=format_display_time(imsak, time_format) if imsak else None,
        is_fasting_hours=is_fasting,
        time_to_iftar=time_to_iftar,
        time_to_suhoor_end=time_to_suhoor_end,
    )
