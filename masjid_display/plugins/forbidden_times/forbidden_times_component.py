from typing import Any, Dict, Optional

from masjid_display.core.component_base import DerivationContext, DisplayComponent
from masjid_display.core.models import ForbiddenState
from .service import SUNRISE_BUFFER_MINUTES, ZENITH_MINUTES_BEFORE_ZUHR, get_current_forbidden_window


class ForbiddenTimesComponent(DisplayComponent):
    name = "Forbidden Times"
    snapshot_field = "forbidden"
    priority = 30

    def __init__(self, app, config: Dict[str, Any]):
        super().__init__(app, config)
        self._last_reason: Optional[str] = None

    @property
    def sunrise_buffer_minutes(self) -> int:
        return self.config.get("sunrise_buffer_minutes", SUNRISE_BUFFER_MINUTES)

    @property
    def zenith_minutes_before_zuhr(self) -> int:
        return self.config.get("zenith_minutes_before_zuhr", ZENITH_MINUTES_BEFORE_ZUHR)

    def derive(self, context: DerivationContext) -> ForbiddenState:
        state = get_current_forbidden_window(
            context.raw_times,
            context.time.moment,
            sunrise_buffer_minutes=self.sunrise_buffer_minutes,
            zenith_minutes_before_zuhr=self.zenith_minutes_before_zuhr,
        )
        if state.reason != self._last_reason:
            if state.is_forbidden:
                self.logger.info(f"Forbidden window started: {state.reason} (until {state.ends_at})")
            elif self._last_reason is not None:
                self.logger.info(f"Forbidden window ended: {self._last_reason}")
            self._last_reason = state.reason
        return state

    def default_result(self) -> ForbiddenState:
        return ForbiddenState.not_forbidden()
