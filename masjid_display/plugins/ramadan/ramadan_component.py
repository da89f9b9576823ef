from typing import Any, Dict, Optional

from masjid_display.core.component_base import DerivationContext, DisplayComponent
from masjid_display.core.models import RamadanState
from masjid_display.core.time_utils import TIME_FORMAT_24H
from .service import DEFAULT_IMSAK_OFFSET_MINUTES, HijriDayCache, derive_ramadan_state


class RamadanComponent(DisplayComponent):
    name = "Ramadan Mode"
    snapshot_field = "ramadan"
    priority = 30

    def __init__(self, app, config: Dict[str, Any], hijri_cache: Optional[HijriDayCache] = None):
        super().__init__(app, config)
        self.hijri_cache = hijri_cache or HijriDayCache()
        self._was_ramadan: Optional[bool] = None

    def derive(self, context: DerivationContext) -> RamadanState:
        now = context.time.moment
        hijri_text = self.hijri_cache.get(now.date())
        state = derive_ramadan_state(
            context.raw_times,
            now,
            hijri_text,
            override=context.overrides.ramadan,
            imsak_offset_minutes=self.config.get("imsak_offset_minutes", DEFAULT_IMSAK_OFFSET_MINUTES),
            time_format=self.config.get("time_format", TIME_FORMAT_24H),
            show_seconds=self.config.get("show_seconds", True),
        )
        if state.is_ramadan != self._was_ramadan:
            self._was_ramadan = state.is_ramadan
            if state.is_ramadan:
                self.logger.info(f"Ramadan mode on (day {state.ramadan_day}, Hijri: {hijri_text})")
            else:
                self.logger.info(f"Ramadan mode off (Hijri: {hijri_text})")
        return state

    def default_result(self) -> RamadanState:
        return RamadanState.not_ramadan()
