"""
Value types shared by the clock, the derivation plugins and the API.
All of them are frozen pydantic models: immutable, hashable and JSON-serialisable.
"""
from datetime import date as Date, datetime
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from masjid_display.core.time_utils import (
    MINUTES_PER_DAY,
    format_hhmm,
    minute_of_day,
    normalize_hhmm,
    parse_hhmm,
    second_of_day,
)

PRAYER_NAMES = ["Fajr", "Sunrise", "Zuhr", "Asr", "Maghrib", "Isha"]
SKIP_PRAYERS = ["Sunrise"]  # shown, never next/current

PrayerPhase = Literal["countdown-adhan", "countdown-jamaat", "jamaat-soon", "in-prayer"]
PRAYER_PHASES = ("countdown-adhan", "countdown-jamaat", "jamaat-soon", "in-prayer")
DEFAULT_PHASE: PrayerPhase = "countdown-adhan"

CountdownKind = Literal["adhan", "jamaat", "iftar", "suhoor"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimeSnapshot(FrozenModel):
    """One wall-clock instant, truncated to the second. Every derivation in a tick uses the same one."""

    moment: datetime

    @field_validator("moment")
    @classmethod
    def _truncate(cls, value: datetime) -> datetime:
        return value.replace(microsecond=0)

    @classmethod
    def at(cls, moment: datetime) -> "TimeSnapshot":
        return cls(moment=moment)

    @property
    def date(self) -> Date:
        return self.moment.date()

    @property
    def minute_of_day(self) -> int:
        return minute_of_day(self.moment)

    @property
    def second_of_day(self) -> int:
        return second_of_day(self.moment)


_TIME_FIELDS = [
    "fajr", "sunrise", "zuhr", "asr", "maghrib", "isha",
    "fajr_jamaat", "zuhr_jamaat", "asr_jamaat", "maghrib_jamaat", "isha_jamaat",
    "jummah_jamaat", "jummah_khutbah",
]

# Normalised key (lowercase, no separators) -> field name
_KEY_ALIASES: Dict[str, str] = {f.replace("_", ""): f for f in _TIME_FIELDS}
_KEY_ALIASES.update({
    "dhuhr": "zuhr",
    "dhuhrjamaat": "zuhr_jamaat",
    "zuhrjamaat": "zuhr_jamaat",
    "jumuahjamaat": "jummah_jamaat",
    "jumuahkhutbah": "jummah_khutbah",
    "date": "date",
})


def _coerce_time(value: Any) -> Optional[str]:
    # YAML 1.1 reads an unquoted 05:30 as the sexagesimal integer 330
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < MINUTES_PER_DAY:
        return format_hhmm(value)
    if isinstance(value, str):
        return normalize_hhmm(value)
    return None


class RawDailyTimes(FrozenModel):
    """
    Today's adhan and jamaat times as "HH:MM". Unparsable values become None, and a
    jamaat earlier than its own adhan is dropped. Replaced wholesale by the content sync.
    """

    date: Optional[str] = None
    fajr: Optional[str] = None
    sunrise: Optional[str] = None
    zuhr: Optional[str] = None
    asr: Optional[str] = None
    maghrib: Optional[str] = None
    isha: Optional[str] = None
    fajr_jamaat: Optional[str] = None
    zuhr_jamaat: Optional[str] = None
    asr_jamaat: Optional[str] = None
    maghrib_jamaat: Optional[str] = None
    isha_jamaat: Optional[str] = None
    jummah_jamaat: Optional[str] = None
    jummah_khutbah: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        values: Dict[str, Any] = {}
        for key, value in data.items():
            field = _KEY_ALIASES.get(str(key).lower().replace("_", "").replace("-", ""))
            if field is None:
                continue
            if field == "date":
                values["date"] = str(value) if value is not None else None
            else:
                values[field] = _coerce_time(value)
        for name in ("fajr", "zuhr", "asr", "maghrib", "isha"):
            adhan = parse_hhmm(values.get(name))
            jamaat = parse_hhmm(values.get(f"{name}_jamaat"))
            if jamaat is not None and (adhan is None or jamaat < adhan):
                values[f"{name}_jamaat"] = None
        return values

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["RawDailyTimes"]:
        if not data:
            return None
        return cls.model_validate(dict(data))

    def time_for(self, prayer_name: str) -> Optional[str]:
        return getattr(self, prayer_name.lower(), None)

    def jamaat_for(self, prayer_name: str) -> Optional[str]:
        return getattr(self, f"{prayer_name.lower()}_jamaat", None)

    def minutes_for(self, prayer_name: str) -> Optional[int]:
        return parse_hhmm(self.time_for(prayer_name))

    def is_empty(self) -> bool:
        return all(self.time_for(name) is None for name in PRAYER_NAMES)


class Countdown(FrozenModel):
    """A live countdown plus the prayer it targets, so callers can merge duplicates."""

    label: str
    target_name: str
    target_time: str
    kind: CountdownKind
    seconds_remaining: int
    text: str


class FormattedPrayer(FrozenModel):
    name: str
    time: str
    jamaat: Optional[str] = None
    display_time: str
    display_jamaat: Optional[str] = None
    is_next: bool = False
    is_current: bool = False
    is_tomorrow: bool = False
    time_until: str = ""
    countdown: Optional[Countdown] = None


class PrayerSchedule(FrozenModel):
    prayers: List[FormattedPrayer] = []
    next_prayer: Optional[FormattedPrayer] = None
    current_prayer: Optional[FormattedPrayer] = None
    date: Optional[Date] = None
    is_jumuah_today: bool = False
    jumuah_time: Optional[str] = None
    jumuah_display_time: Optional[str] = None
    jumuah_khutbah_time: Optional[str] = None

    @classmethod
    def empty(cls) -> "PrayerSchedule":
        return cls()

    def find(self, name: str) -> Optional[FormattedPrayer]:
        for prayer in self.prayers:
            if prayer.name == name:
                return prayer
        return None


class PhaseState(FrozenModel):
    phase: PrayerPhase = DEFAULT_PHASE
    prayer_name: Optional[str] = None
    overridden: bool = False


class RamadanState(FrozenModel):
    is_ramadan: bool = False
    ramadan_day: Optional[int] = None
    hijri_date: Optional[str] = None
    suhoor_end_time: Optional[str] = None
    iftar_time: Optional[str] = None
    imsak_time: Optional[str] = None
    imsak_display_time: Optional[str] = None
    is_fasting_hours: bool = False
    time_to_iftar: Optional[Countdown] = None
    time_to_suhoor_end: Optional[Countdown] = None

    @classmethod
    def not_ramadan(cls) -> "RamadanState":
        return cls()


class ForbiddenWindow(FrozenModel):
    start: str
    end: str
    label: str


class ForbiddenState(FrozenModel):
    is_forbidden: bool = False
    reason: Optional[str] = None
    ends_at: Optional[str] = None

    @classmethod
    def not_forbidden(cls) -> "ForbiddenState":
        return cls()


class DisplaySnapshot(FrozenModel):
    """Everything the UI layer needs for one tick."""

    time: TimeSnapshot
    schedule: PrayerSchedule = PrayerSchedule()
    phase: PhaseState = PhaseState()
    ramadan: RamadanState = RamadanState()
    forbidden: ForbiddenState = ForbiddenState()
