from datetime import date
from typing import Any, Dict, Optional

from masjid_display.core.cache import MemoCache
from masjid_display.core.component_base import DerivationContext, DisplayComponent
from masjid_display.core.models import PrayerSchedule
from masjid_display.core.time_utils import TIME_FORMAT_24H
from .service import format_prayer_times, select_prayers


class PrayerTimesComponent(DisplayComponent):
    name = "Prayer Times"
    snapshot_field = "schedule"
    priority = 10

    def __init__(self, app, config: Dict[str, Any]):
        super().__init__(app, config)
        self._current_day: Optional[date] = None
        self.cache = self._create_cache()

    def _create_cache(self) -> MemoCache:
        return MemoCache(
            ttl_seconds=self.config.get("cache_ttl_seconds", MemoCache.DEFAULT_TTL_SECONDS),
            max_entries=self.config.get("cache_max_entries", MemoCache.DEFAULT_MAX_ENTRIES),
        )

    @property
    def time_format(self) -> str:
        return self.config.get("time_format", TIME_FORMAT_24H)

    def derive(self, context: DerivationContext) -> PrayerSchedule:
        now = context.time.moment
        self._check_for_day_change(now.date())

        raw = context.raw_times
        if raw is None:
            return PrayerSchedule(date=now.date())

        minute = context.time.minute_of_day
        key = (now.date().isoformat(), raw, minute)
        selection = self.cache.get_or_compute(key, lambda: select_prayers(raw, minute))
        return format_prayer_times(
            raw,
            now,
            time_format=self.time_format,
            show_seconds=self.config.get("show_seconds", True),
            selection=selection,
        )

    def default_result(self) -> PrayerSchedule:
        return PrayerSchedule.empty()

    def _check_for_day_change(self, today: date) -> None:
        if self._current_day is not None and today != self._current_day:
            self.logger.info(f"Day changed - clearing prayer times cache (old: {self._current_day}, new: {today})")
            self.cache.clear()
        self._current_day = today

    def on_raw_times_changed(self) -> None:
        self.cache.clear()

    def update_from_config(self) -> None:
        self.cache = self._create_cache()
