import logging
import sys
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .clock import SharedClock
from .component_base import DerivationContext, DisplayComponent
from .config import Config
from .models import DisplaySnapshot, RawDailyTimes, TimeSnapshot
from .overrides import OverrideChannel, OverrideState
from .plugin_manager import PluginManager

SnapshotListener = Callable[[DisplaySnapshot], None]

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


class DisplayApp:
    """
    Headless engine behind the masjid screen. Subscribes once to the shared clock and, on
    every tick, runs each enabled component against the same TimeSnapshot to build one
    DisplaySnapshot for the UI layer.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        clock: Optional[SharedClock] = None,
        watch_config: bool = True,
        configure_logging: bool = True,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch_config)
        self.config.register_change_callback(self.handle_config_change)

        if configure_logging:
            self._setup_logging()

        clock_config = self.config.data.get("clock") or {}
        self.clock = clock or SharedClock(interval=float(clock_config.get("interval_seconds", 1.0)))

        self._lock = threading.RLock()
        self._snapshot: Optional[DisplaySnapshot] = None
        self._listeners: List[SnapshotListener] = []
        self._unsubscribe_clock: Optional[Callable[[], None]] = None
        self._stop_event = threading.Event()
        # Last prayer_times section read from the config file
        self._config_prayer_times = self.config.data.get("prayer_times")
        self.raw_times: Optional[RawDailyTimes] = RawDailyTimes.from_mapping(self._config_prayer_times)

        self.plugin_manager = PluginManager()
        self.components: List[DisplayComponent] = []
        self.initialize_components()

        self.overrides = OverrideChannel()
        self.overrides.apply_config(self.config.data)
        self.overrides.register_change_callback(self._on_overrides_changed)

    def _setup_logging(self) -> None:
        """Configure logging to write to both file and stdout"""
        logging_config = self.config.data.get("logging") or {}
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        log_file = logging_config.get("file")
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Masjid display engine starting...")

    def initialize_components(self) -> None:
        self.components = self.plugin_manager.create_components(self, self.config.get_component_config)
        self.logger.info(f"Active components: {[c.name for c in self.components]}")

    def get_component(self, name: str) -> Optional[DisplayComponent]:
        for component in self.components:
            if component.name == name:
                return component
        return None

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register listener for every new DisplaySnapshot. Returns unsubscribe."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def get_snapshot(self) -> Optional[DisplaySnapshot]:
        return self._snapshot

    def compute_snapshot(self, time_snapshot: TimeSnapshot) -> DisplaySnapshot:
        context = DerivationContext(time_snapshot, self.raw_times, self.overrides.state)
        for component in self.components:
            context.results[component.snapshot_field] = component.safe_derive(context)
        fields = {k: v for k, v in context.results.items() if v is not None}
        return DisplaySnapshot(time=time_snapshot, **fields)

    def refresh(self) -> DisplaySnapshot:
        """Recompute for the clock's last broadcast time, e.g. after an input changed between ticks."""
        return self._on_tick(self.clock.get_current_time())

    def _on_tick(self, time_snapshot: TimeSnapshot) -> DisplaySnapshot:
        with self._lock:
            snapshot = self.compute_snapshot(time_snapshot)
            self._snapshot = snapshot
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error(f"Error in snapshot listener: {e}", exc_info=True)
        return snapshot

    def set_raw_times(self, raw: Union[RawDailyTimes, Mapping[str, Any], None]) -> None:
        """Replace today's table. Takes effect immediately, not at the next tick."""
        if raw is not None and not isinstance(raw, RawDailyTimes):
            raw = RawDailyTimes.from_mapping(raw)
        with self._lock:
            if raw == self.raw_times:
                return
            self.raw_times = raw
            self.logger.info(f"Prayer times replaced (date: {raw.date if raw else None})")
            for component in self.components:
                component.on_raw_times_changed()
        self.refresh()

    def _on_overrides_changed(self, state: OverrideState) -> None:
        self.refresh()

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Handle configuration changes"""
        self.logger.info("Handling config change")
        try:
            components_config = new_config.get("components") or {}
            for component in self.components:
                if component.name in components_config:
                    component.update_config(dict(components_config[component.name] or {}))
            self.overrides.apply_config(new_config)
            # Tables pushed by set_raw_times survive reloads that leave this section alone
            config_times = new_config.get("prayer_times")
            if config_times != self._config_prayer_times:
                self._config_prayer_times = config_times
                self.set_raw_times(config_times)
            self.refresh()
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def start(self) -> None:
        if self._unsubscribe_clock is None:
            self._unsubscribe_clock = self.clock.subscribe(self._on_tick)
            self.logger.info("Subscribed to clock")

    def stop(self) -> None:
        if self._unsubscribe_clock is not None:
            self._unsubscribe_clock()
            self._unsubscribe_clock = None
        self._stop_event.set()

    def run(self) -> None:
        try:
            from masjid_display.api import run_api_server
            run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

        try:
            self.start()
            while not self._stop_event.wait(1.0):
                pass
        except KeyboardInterrupt:
            self.logger.info("Interrupted, shutting down")
        finally:
            self.stop()
            self.config.cleanup()
