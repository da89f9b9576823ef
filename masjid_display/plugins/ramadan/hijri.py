"""
Gregorian -> Hijri (Umm al-Qura) as a "D Month YYYY AH" string, and the parse back.
"""
import logging
import re
from datetime import date
from typing import Optional

from hijridate import Gregorian

from masjid_display.core.models import FrozenModel

logger = logging.getLogger(__name__)

HIJRI_MONTHS = [
    "Muharram",
    "Safar",
    "Rabi al-Awwal",
    "Rabi al-Thani",
    "Jumada al-Awwal",
    "Jumada al-Thani",
    "Rajab",
    "Shaban",
    "Ramadan",
    "Shawwal",
    "Dhu al-Qadah",
    "Dhu al-Hijjah",
]
RAMADAN = "Ramadan"

_HIJRI_RE = re.compile(r"^\s*(\d{1,2})\s+(.+?)\s+(\d{1,4})\s*AH\s*$")


class HijriDate(FrozenModel):
    day: int
    month_name: str
    year: int

    @property
    def is_ramadan(self) -> bool:
        return self.month_name == RAMADAN


def to_hijri_string(day: date) -> Optional[str]:
    """Hijri date for a Gregorian day, or None when the calendar does not cover it."""
    try:
        hijri = Gregorian(day.year, day.month, day.day).to_hijri()
    except (OverflowError, ValueError) as e:
        logger.warning(f"Could not convert {day} to Hijri: {e}")
        return None
    return f"{hijri.day} {HIJRI_MONTHS[hijri.month - 1]} {hijri.year} AH"


def parse_hijri_string(text: Optional[str]) -> Optional[HijriDate]:
    if not text:
        return None
    match = _HIJRI_RE.match(text)
    if not match:
        logger.debug(f"Unrecognised Hijri date '{text}'")
        return None
    day = int(match.group(1))
    if not 1 <= day <= 30:
        return None
    return HijriDate(day=day, month_name=match.group(2), year=int(match.group(3)))
