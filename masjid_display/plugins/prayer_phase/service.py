"""
Phase machine for the signage screen: what to show given the next prayer and the clock.

    countdown-adhan  -> now is before the next prayer's adhan (also the cold-start state)
    countdown-jamaat -> adhan has passed, jamaat more than the threshold away
    jamaat-soon      -> adhan has passed, jamaat within the threshold
    in-prayer        -> from jamaat until jamaat + in_prayer_minutes

A prayer without a jamaat time never enters the last three phases.
"""
from datetime import datetime
from typing import Optional

from masjid_display.core.models import FormattedPrayer, PhaseState, PrayerPhase, PrayerSchedule
from masjid_display.core.time_utils import SECONDS_PER_DAY, parse_hhmm, second_of_day

DEFAULT_JAMAAT_SOON_MINUTES = 5
DEFAULT_IN_PRAYER_MINUTES = 5


def _in_prayer(prayer: Optional[FormattedPrayer], now_second: int, in_prayer_minutes: int) -> bool:
    if prayer is None:
        return False
    jamaat = parse_hhmm(prayer.jamaat)
    if jamaat is None:
        return False
    elapsed = (now_second - jamaat * 60) % SECONDS_PER_DAY
    return elapsed < in_prayer_minutes * 60


def compute_prayer_phase(
    schedule: PrayerSchedule,
    now: datetime,
    override: Optional[PrayerPhase] = None,
    jamaat_soon_minutes: int = DEFAULT_JAMAAT_SOON_MINUTES,
    in_prayer_minutes: int = DEFAULT_IN_PRAYER_MINUTES,
) -> PhaseState:
    next_prayer = schedule.next_prayer
    current_prayer = schedule.current_prayer

    if override is not None:
        # Forced tag is returned as is; nothing computed below is mixed in
        attached = next_prayer or current_prayer
        return PhaseState(
            phase=override,
            prayer_name=attached.name if attached else None,
            overridden=True,
        )

    now_second = second_of_day(now)

    if _in_prayer(current_prayer, now_second, in_prayer_minutes):
        return PhaseState(phase="in-prayer", prayer_name=current_prayer.name)

    if next_prayer is None:
        return PhaseState()

    adhan = parse_hhmm(next_prayer.time)
    jamaat = parse_hhmm(next_prayer.jamaat)
    if next_prayer.is_tomorrow or adhan is None or now_second < adhan * 60:
        return PhaseState(phase="countdown-adhan", prayer_name=next_prayer.name)

    if jamaat is not None and now_second < jamaat * 60:
        remaining = jamaat * 60 - now_second
        if remaining <= jamaat_soon_minutes * 60:
            return PhaseState(phase="jamaat-soon", prayer_name=next_prayer.name)
        return PhaseState(phase="countdown-jamaat", prayer_name=next_prayer.name)

    return PhaseState(phase="countdown-adhan", prayer_name=next_prayer.name)
