"""
Turns today's raw table into the ordered, annotated prayer list with next/current flags
and the countdown for the next prayer.

Selection works on minutes of day. Every adhan and jamaat falls on a whole minute, so
which prayer is next or current cannot change inside a minute; that is what makes the
selection safe to memoize per minute while countdown text is rebuilt every tick.
"""
import logging
from datetime import datetime
from typing import List, Literal, Optional, Tuple

from masjid_display.core.countdown import build_countdown
from masjid_display.core.models import (
    PRAYER_NAMES,
    SKIP_PRAYERS,
    FormattedPrayer,
    FrozenModel,
    PrayerSchedule,
    RawDailyTimes,
)
from masjid_display.core.time_utils import (
    TIME_FORMAT_24H,
    format_display_time,
    minute_of_day,
    parse_hhmm,
)

logger = logging.getLogger(__name__)

FRIDAY = 4


class ScheduleSelection(FrozenModel):
    """Which prayer is next/current for one minute of the day."""

    next_name: Optional[str] = None
    current_name: Optional[str] = None
    next_is_tomorrow: bool = False
    next_target: Literal["adhan", "jamaat"] = "adhan"


def _eligible_prayers(raw: RawDailyTimes) -> List[Tuple[str, int, Optional[int]]]:
    """(name, adhan minutes, jamaat minutes) for prayers that can be next/current, earliest first."""
    eligible = []
    for name in PRAYER_NAMES:
        if name in SKIP_PRAYERS:
            continue
        adhan = raw.minutes_for(name)
        if adhan is None:
            continue
        eligible.append((name, adhan, parse_hhmm(raw.jamaat_for(name))))
    eligible.sort(key=lambda p: p[1])
    return eligible


def select_prayers(raw: Optional[RawDailyTimes], now_minute: int) -> ScheduleSelection:
    """
    Next = earliest prayer whose adhan, or failing that its jamaat, is still ahead.
    With nothing left today, next is tomorrow's first prayer.
    Current = the latest prayer whose adhan has passed and that is not next; before
    the first adhan of the day that is last night's final prayer.
    """
    if raw is None:
        return ScheduleSelection()
    eligible = _eligible_prayers(raw)
    if not eligible:
        return ScheduleSelection()

    next_name = None
    next_target = "adhan"
    next_is_tomorrow = False
    for name, adhan, jamaat in eligible:
        if now_minute < adhan:
            next_name = name
            break
        if jamaat is not None and now_minute < jamaat:
            next_name = name
            next_target = "jamaat"
            break
    if next_name is None:
        next_name = eligible[0][0]
        next_is_tomorrow = True

    # Tomorrow's next prayer is another occurrence; today's may still be current
    passed = [
        name for name, adhan, _ in eligible
        if adhan <= now_minute and (next_is_tomorrow or name != next_name)
    ]
    current_name = passed[-1] if passed else eligible[-1][0]
    if current_name == next_name and not next_is_tomorrow:
        current_name = None

    return ScheduleSelection(
        next_name=next_name,
        current_name=current_name,
        next_is_tomorrow=next_is_tomorrow,
        next_target=next_target,
    )


def format_prayer_times(
    raw: Optional[RawDailyTimes],
    now: datetime,
    time_format: str = TIME_FORMAT_24H,
    show_seconds: bool = True,
    selection: Optional[ScheduleSelection] = None,
) -> PrayerSchedule:
    """Build the schedule for the instant now. Prayers with no usable time are left out."""
    today = now.date()
    if raw is None or raw.is_empty():
        return PrayerSchedule(date=today)
    if selection is None:
        selection = select_prayers(raw, minute_of_day(now))

    prayers: List[FormattedPrayer] = []
    next_prayer = None
    current_prayer = None
    for name in PRAYER_NAMES:
        time = raw.time_for(name)
        if time is None:
            logger.debug(f"No time for {name}, leaving it out")
            continue
        jamaat = raw.jamaat_for(name)
        is_next = name == selection.next_name
        countdown = None
        if is_next:
            if selection.next_target == "jamaat" and jamaat:
                countdown = build_countdown(
                    f"{name} Jamaat", name, jamaat, "jamaat", now, show_seconds=show_seconds
                )
            else:
                countdown = build_countdown(
                    name, name, time, "adhan", now,
                    allow_wrap=selection.next_is_tomorrow,
                    show_seconds=show_seconds,
                )
        prayer = FormattedPrayer(
            name=name,
            time=time,
            jamaat=jamaat,
            display_time=format_display_time(time, time_format),
            display_jamaat=format_display_time(jamaat, time_format) if jamaat else None,
            is_next=is_next,
            is_current=name == selection.current_name,
            is_tomorrow=is_next and selection.next_is_tomorrow,
            time_until=countdown.text if countdown else "",
            countdown=countdown,
        )
        prayers.append(prayer)
        if prayer.is_next:
            next_prayer = prayer
        if prayer.is_current:
            current_prayer = prayer

    is_jumuah = today.weekday() == FRIDAY
    jumuah_time = raw.jummah_jamaat if is_jumuah else None
    khutbah_time = raw.jummah_khutbah if is_jumuah else None
    return PrayerSchedule(
        prayers=prayers,
        next_prayer=next_prayer,
        current_prayer=current_prayer,
        date=today,
        is_jumuah_today=is_jumuah,
        jumuah_time=jumuah_time,
        jumuah_display_time=format_display_time(jumuah_time, time_format) if jumuah_time else None,
        jumuah_khutbah_time=format_display_time(khutbah_time, time_format) if khutbah_time else None,
    )
