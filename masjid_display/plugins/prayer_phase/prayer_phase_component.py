from typing import Any, Dict, Optional

from masjid_display.core.component_base import DerivationContext, DisplayComponent
from masjid_display.core.models import PhaseState
from .service import DEFAULT_IN_PRAYER_MINUTES, DEFAULT_JAMAAT_SOON_MINUTES, compute_prayer_phase


class PrayerPhaseComponent(DisplayComponent):
    name = "Prayer Phase"
    snapshot_field = "phase"
    priority = 20

    def __init__(self, app, config: Dict[str, Any]):
        super().__init__(app, config)
        self._last_state: Optional[PhaseState] = None

    def derive(self, context: DerivationContext) -> PhaseState:
        state = compute_prayer_phase(
            context.schedule,
            context.time.moment,
            override=context.overrides.prayer_phase,
            jamaat_soon_minutes=self.config.get("jamaat_soon_minutes", DEFAULT_JAMAAT_SOON_MINUTES),
            in_prayer_minutes=self.config.get("in_prayer_minutes", DEFAULT_IN_PRAYER_MINUTES),
        )
        self._log_transition(state)
        return state

    def default_result(self) -> PhaseState:
        return PhaseState()

    def _log_transition(self, state: PhaseState) -> None:
        if state == self._last_state:
            return
        previous = self._last_state
        self._last_state = state
        forced = " (override)" if state.overridden else ""
        if previous is None:
            self.logger.info(f"Initial phase: {state.phase} for {state.prayer_name}{forced}")
        else:
            self.logger.info(
                f"Phase changed: {previous.phase} ({previous.prayer_name}) -> "
                f"{state.phase} ({state.prayer_name}){forced}"
            )
