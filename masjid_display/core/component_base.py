from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import logging

from masjid_display.core.models import PrayerSchedule, RawDailyTimes, TimeSnapshot
from masjid_display.core.overrides import OverrideState


class DerivationContext:
    """Inputs for one tick plus the results of components that already ran in it."""

    def __init__(
        self,
        time: TimeSnapshot,
        raw_times: Optional[RawDailyTimes],
        overrides: OverrideState,
    ):
        self.time = time
        self.raw_times = raw_times
        self.overrides = overrides
        self.results: Dict[str, Any] = {}

    @property
    def schedule(self) -> PrayerSchedule:
        return self.results.get("schedule") or PrayerSchedule.empty()


class DisplayComponent(ABC):
    # DisplaySnapshot field this component fills
    snapshot_field: str = ""
    # Lower runs first within a tick
    priority: int = 100

    def __init__(self, app, config: Dict[str, Any]):
        self.config = config
        self.app = app
        self.logger = logging.getLogger(self.name)
        self._latest_result = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the component"""
        pass

    @property
    def latest_result(self) -> Any:
        return self._latest_result

    @abstractmethod
    def derive(self, context: DerivationContext) -> Any:
        """Compute this component's value for the tick in context"""
        pass

    @abstractmethod
    def default_result(self) -> Any:
        """Safe value used when derive fails"""
        pass

    def safe_derive(self, context: DerivationContext) -> Any:
        try:
            result = self.derive(context)
        except Exception as e:
            self.logger.error(f"Error deriving {self.name}: {e}", exc_info=True)
            result = self.default_result()
        self._latest_result = result
        return result

    def on_raw_times_changed(self) -> None:
        """Called when today's table is replaced"""
        pass

    def update_config(self, new_config: Dict[str, Any]) -> None:
        """Update component configuration"""
        self.config = new_config
        self.logger.info(f"Updated config for {self.name}")
        self._handle_config_update()

    def _handle_config_update(self) -> None:
        """Handle configuration updates"""
        try:
            self.logger.debug(f"Handling config update for {self.name}")
            if hasattr(self, 'update_from_config'):
                self.update_from_config()
        except Exception as e:
            self.logger.error(f"Error handling config update for {self.name}: {e}", exc_info=True)
