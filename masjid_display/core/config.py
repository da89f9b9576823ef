"""
YAML configuration with .env support and hot reload.

The config directory is watched with watchdog; when the config file is written (or
replaced, as most editors do) it is re-read, the differences are logged, and every
registered callback receives the new data. A file that fails to load leaves the
previous configuration in place.
"""
import copy
import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"
RELOAD_COOLDOWN_SECONDS = 1.0

ConfigCallback = Callable[[Dict[str, Any]], None]

_ENV_LINE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
_ENV_REF = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$|^\$([A-Za-z_][A-Za-z0-9_]*)$")


def default_config(config_dir: Path) -> Dict[str, Any]:
    return {
        "components": {
            "Prayer Times": {
                "enable": True,
                "time_format": "24h",
                "cache_ttl_seconds": 30,
                "cache_max_entries": 10,
                "show_seconds": True,
            },
            "Prayer Phase": {
                "enable": True,
                "jamaat_soon_minutes": 5,
                "in_prayer_minutes": 5,
            },
            "Ramadan Mode": {
                "enable": True,
                "imsak_offset_minutes": 5,
                "time_format": "24h",
            },
            "Forbidden Times": {
                "enable": True,
                "sunrise_buffer_minutes": 15,
                "zenith_minutes_before_zuhr": 5,
            },
        },
        # Quote times: YAML reads a bare 05:30 as a base-60 integer
        "prayer_times": {},
        "overrides": {
            "prayer_phase": None,
            "ramadan": "auto",
        },
        "clock": {
            "interval_seconds": 1.0,
        },
        "api": {
            "enabled": False,
            "host": "127.0.0.1",
            "port": 8765,
        },
        "logging": {
            "level": "INFO",
            "file": str(config_dir / "masjid_display.log"),
        },
    }


def load_env_file(candidates: List[Path]) -> Optional[Path]:
    """Export KEY=VALUE lines from the first existing file. Variables already set win."""
    env_file = next((path for path in candidates if path.exists()), None)
    if env_file is None:
        logger.debug("No .env file found")
        return None

    logger.info(f"Loading environment variables from: {env_file}")
    try:
        for line in env_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            match = _ENV_LINE.match(line)
            if not match:
                continue
            key, value = match.group(1), match.group(2).strip('"').strip("'")
            if key not in os.environ:
                os.environ[key] = value
                logger.debug(f"Loaded env var: {key}")
    except OSError as e:
        logger.warning(f"Error reading .env file {env_file}: {e}")
    return env_file


def substitute_env_vars(data: Any) -> Any:
    """Replace whole-string ${VAR} / $VAR values; unknown variables are left as written."""
    if isinstance(data, dict):
        return {key: substitute_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    if isinstance(data, str):
        match = _ENV_REF.match(data)
        if match:
            return os.environ.get(match.group(1) or match.group(2), data)
    return data


def diff_configs(old: Dict[str, Any], new: Dict[str, Any], path: str = "") -> Iterator[str]:
    for key in sorted(set(old) | set(new), key=str):
        current = f"{path}.{key}" if path else str(key)
        if key not in new:
            yield f"removed {current}: {old[key]}"
        elif key not in old:
            yield f"added {current}: {new[key]}"
        elif isinstance(old[key], dict) and isinstance(new[key], dict):
            yield from diff_configs(old[key], new[key], current)
        elif old[key] != new[key]:
            yield f"changed {current}: {old[key]} -> {new[key]}"


class ConfigFileWatcher(FileSystemEventHandler):
    def __init__(self, config: "Config", cooldown: float = RELOAD_COOLDOWN_SECONDS):
        self.config = config
        self.cooldown = cooldown
        self.last_reload: Optional[float] = None

    def on_modified(self, event):
        if not event.is_directory:
            self._maybe_reload(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._maybe_reload(event.src_path)

    def on_moved(self, event):
        # Editors that save via rename-over
        if not event.is_directory:
            self._maybe_reload(event.dest_path)

    def _maybe_reload(self, changed_path) -> None:
        if Path(os.fsdecode(changed_path)).resolve() != self.config.config_file:
            return
        now = time.monotonic()
        if self.last_reload is not None and now - self.last_reload < self.cooldown:
            return
        self.last_reload = now
        try:
            self.config.reload()
        except Exception as e:
            logger.error(f"Error handling config change: {e}", exc_info=True)


class Config:
    def __init__(self, config_path: Optional[str] = None, watch: bool = True):
        if config_path:
            self.config_file = Path(config_path).expanduser().resolve()
        else:
            self.config_file = (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
        self.config_dir = self.config_file.parent
        logger.debug(f"Using config file: {self.config_file}")

        self.data: Dict[str, Any] = {}
        self.change_callbacks: List[ConfigCallback] = []
        self._reload_lock = threading.Lock()
        self.observer = None

        load_env_file([self.config_dir / ".env", Path.cwd() / ".env"])
        self._ensure_config_exists()
        if not self._load_config():
            logger.info("Using default configuration")
            self.data = default_config(self.config_dir)

        if watch:
            self.observer = Observer()
            self.observer.schedule(ConfigFileWatcher(self), str(self.config_dir), recursive=False)
            self.observer.start()
            logger.info(f"Watching {self.config_dir} for config changes")

    def register_change_callback(self, callback: ConfigCallback) -> Callable[[], None]:
        """Call callback with the new data after every successful reload. Returns unregister."""
        self.change_callbacks.append(callback)

        def unregister() -> None:
            if callback in self.change_callbacks:
                self.change_callbacks.remove(callback)

        return unregister

    def reload(self) -> None:
        # A reload triggered while one is running is dropped
        if not self._reload_lock.acquire(blocking=False):
            return
        try:
            logger.info("Config file change detected - reloading configuration")
            # Let the writer finish
            time.sleep(0.1)
            old_data = copy.deepcopy(self.data)
            if not self._load_config():
                return
            changes = list(diff_configs(old_data, self.data))
            for change in changes:
                logger.info(f"Config {change}")
            if not changes:
                logger.info("Config reloaded, no changes")
            for callback in list(self.change_callbacks):
                try:
                    callback(self.data)
                except Exception as e:
                    logger.error(f"Error in config change callback: {e}", exc_info=True)
        finally:
            self._reload_lock.release()

    def cleanup(self) -> None:
        """Stop the file observer"""
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def _ensure_config_exists(self) -> None:
        if self.config_file.exists():
            return
        logger.info(f"Creating default config file: {self.config_file}")
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(yaml.safe_dump(default_config(self.config_dir), sort_keys=False))

    def _load_config(self) -> bool:
        """Read the file into self.data. On any failure self.data is left untouched."""
        try:
            with open(self.config_file) as f:
                loaded = yaml.safe_load(f)
            if not isinstance(loaded, dict):
                raise ValueError("Invalid config format: root must be a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Error loading config {self.config_file}: {e}")
            if self.data:
                logger.info("Keeping previous configuration")
            return False

        loaded = substitute_env_vars(loaded)
        log_file = (loaded.get("logging") or {}).get("file")
        if isinstance(log_file, str):
            loaded["logging"]["file"] = os.path.expanduser(log_file)
        self.data = loaded
        logger.debug(f"Loaded config data: {self.data}")
        return True

    def get_component_config(self, component_name: str) -> Optional[Dict[str, Any]]:
        components = self.data.get("components") or {}
        return components.get(component_name)
