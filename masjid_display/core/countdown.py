"""
Countdown rules shared by the prayer schedule, the phase machine and Ramadan mode.

Deltas are whole seconds and always truncated. Under an hour we show minutes and
seconds, from an hour up hours and minutes. A target already passed today counts
against tomorrow only when the caller allows wraparound; otherwise it stays at zero.
"""
from datetime import datetime
from typing import List, Optional

from masjid_display.core.models import Countdown, CountdownKind
from masjid_display.core.time_utils import SECONDS_PER_DAY, format_hhmm, parse_hhmm, second_of_day


def seconds_until(target_minutes: int, now: datetime, allow_wrap: bool = False) -> int:
    """Whole seconds from now until target_minutes (minute of day). Never negative."""
    delta = target_minutes * 60 - second_of_day(now)
    if delta < 0 and allow_wrap:
        delta += SECONDS_PER_DAY
    return max(delta, 0)


def format_countdown(total_seconds: int, show_seconds: bool = True, keep_seconds_over_hour: bool = False) -> str:
    """
    "{h}h {m}m" at or above an hour, "{m}m {s}s" below it.
    Without seconds, "{m}m"; the last minute falls back to "{s}s" so "0m" never shows while time remains.
    """
    if total_seconds <= 0:
        return "0m 0s" if show_seconds else "0m"
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        if keep_seconds_over_hour:
            return f"{hours}h {minutes}m {seconds}s"
        return f"{hours}h {minutes}m"
    if show_seconds:
        return f"{minutes}m {seconds}s"
    if minutes == 0:
        return f"{seconds}s"
    return f"{minutes}m"


def build_countdown(
    label: str,
    target_name: str,
    target_time: str,
    kind: CountdownKind,
    now: datetime,
    allow_wrap: bool = False,
    show_seconds: bool = True,
    keep_seconds_over_hour: bool = False,
) -> Optional[Countdown]:
    target_minutes = parse_hhmm(target_time)
    if target_minutes is None:
        return None
    remaining = seconds_until(target_minutes, now, allow_wrap=allow_wrap)
    return Countdown(
        label=label,
        target_name=target_name,
        target_time=format_hhmm(target_minutes),
        kind=kind,
        seconds_remaining=remaining,
        text=format_countdown(remaining, show_seconds, keep_seconds_over_hour),
    )


def targets_same_event(first: Optional[Countdown], second: Optional[Countdown]) -> bool:
    if first is None or second is None:
        return False
    return first.target_name == second.target_name and first.target_time == second.target_time


def merge_countdowns(primary: Optional[Countdown], secondary: Optional[Countdown]) -> List[Countdown]:
    """
    Countdowns to show side by side. When both point at the same prayer (Maghrib and Iftar,
    Fajr and Suhoor end) they collapse into one with a combined label.
    """
    if targets_same_event(primary, secondary):
        return [primary.model_copy(update={"label": f"{primary.label} / {secondary.label}"})]
    return [c for c in (primary, secondary) if c is not None]
