"""
Developer/test overrides for the phase machine and Ramadan mode.
Changes are pushed to registered callbacks; nothing polls for them.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from masjid_display.core.models import PRAYER_PHASES, FrozenModel, PrayerPhase

logger = logging.getLogger(__name__)

AUTO = "auto"


class OverrideState(FrozenModel):
    prayer_phase: Optional[PrayerPhase] = None
    ramadan: Optional[bool] = None  # None = auto


def parse_ramadan_override(value: Any) -> Optional[bool]:
    """Map true/false/auto (bools or strings) to True/False/None. Unknown values mean auto."""
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "on", "yes", "1"):
        return True
    if text in ("false", "off", "no", "0"):
        return False
    if text != AUTO:
        logger.warning(f"Unknown Ramadan override '{value}', using auto")
    return None


def parse_phase_override(value: Any) -> Optional[PrayerPhase]:
    if value is None or value == "" or value == AUTO:
        return None
    if value not in PRAYER_PHASES:
        logger.warning(f"Unknown prayer phase override '{value}', ignoring")
        return None
    return value


class OverrideChannel:
    def __init__(self, state: Optional[OverrideState] = None):
        self._state = state or OverrideState()
        self._lock = threading.Lock()
        self.change_callbacks: List[Callable[[OverrideState], None]] = []

    @property
    def state(self) -> OverrideState:
        return self._state

    def register_change_callback(self, callback: Callable[[OverrideState], None]) -> Callable[[], None]:
        """Register a callback to be called when an override changes"""
        self.change_callbacks.append(callback)

        def unregister() -> None:
            if callback in self.change_callbacks:
                self.change_callbacks.remove(callback)

        return unregister

    def set_phase_override(self, phase: Optional[PrayerPhase]) -> None:
        self._update(prayer_phase=parse_phase_override(phase))

    def set_ramadan_override(self, value: Any) -> None:
        self._update(ramadan=parse_ramadan_override(value))

    def apply_config(self, config_data: Dict[str, Any]) -> None:
        """Take overrides from the "overrides" config section"""
        section = config_data.get("overrides") or {}
        self._update(
            prayer_phase=parse_phase_override(section.get("prayer_phase")),
            ramadan=parse_ramadan_override(section.get("ramadan", AUTO)),
        )

    def clear(self) -> None:
        self._update(prayer_phase=None, ramadan=None)

    def _update(self, **changes: Any) -> None:
        with self._lock:
            new_state = self._state.model_copy(update=changes)
            if new_state == self._state:
                return
            old_state, self._state = self._state, new_state
        logger.info(f"Overrides changed: {old_state.model_dump()} -> {new_state.model_dump()}")
        for callback in list(self.change_callbacks):
            try:
                callback(new_state)
            except Exception as e:
                logger.error(f"Error in override change callback: {e}", exc_info=True)
