import importlib
import logging
import pkgutil
from typing import Any, Callable, Dict, List, Optional, Type

from .component_base import DisplayComponent

PLUGIN_PACKAGE = "masjid_display.plugins"


class PluginManager:
    """
    Finds the derivation plugins. Each plugin is a subpackage of masjid_display.plugins
    exposing register_components(plugin_manager); an optional <plugin>.api module adds routes.
    """

    def __init__(self, plugin_package: str = PLUGIN_PACKAGE):
        self.plugin_package = plugin_package
        self.components: Dict[str, Type[DisplayComponent]] = {}
        # Component name -> plugin subpackage it came from
        self.component_plugins: Dict[str, str] = {}
        self.plugin_names: List[str] = []
        self.load_errors: Dict[str, str] = {}
        self.logger = logging.getLogger(__name__)
        self._loading: Optional[str] = None
        self.discover_plugins()

    def discover_plugins(self) -> None:
        package = importlib.import_module(self.plugin_package)
        self.logger.info(f"Discovering plugins in package: {self.plugin_package}")

        for _, name, is_pkg in pkgutil.iter_modules(package.__path__):
            if not is_pkg or name in self.plugin_names:
                continue
            self._loading = name
            try:
                module = importlib.import_module(f"{self.plugin_package}.{name}")
                register = getattr(module, "register_components", None)
                if register is None:
                    self.logger.debug(f"Plugin {name} registers no components")
                    continue
                register(self)
                self.plugin_names.append(name)
                self.logger.info(f"Registered components from plugin: {name}")
            except Exception as e:
                self.load_errors[name] = str(e)
                self.logger.exception(f"Error loading plugin {name}: {e}")
            finally:
                self._loading = None

    def register_component(self, component_class: Type[DisplayComponent]) -> None:
        self.logger.debug(f"Registering component: {component_class.name}")
        self.components[component_class.name] = component_class
        if self._loading is not None:
            self.component_plugins[component_class.name] = self._loading

    def create_component(self, app, name: str, config: Optional[Dict[str, Any]]) -> Optional[DisplayComponent]:
        """Instance of a registered component, or None when unknown or not enabled in config"""
        if name not in self.components:
            self.logger.warning(f"Component '{name}' not found")
            return None

        if not config or not config.get("enable", False):
            self.logger.info(f"Component '{name}' disabled")
            return None

        self.logger.debug(f"Creating component {name} with config: {config}")
        return self.components[name](app, config)

    def create_components(
        self, app, get_config: Callable[[str], Optional[Dict[str, Any]]]
    ) -> List[DisplayComponent]:
        """All enabled components, in the order they must run within a tick"""
        created = []
        for name in self.components:
            try:
                component = self.create_component(app, name, get_config(name))
            except Exception as e:
                self.logger.error(f"Error creating component {name}: {e}", exc_info=True)
                continue
            if component is not None:
                created.append(component)
        # Later components read the results of earlier ones
        created.sort(key=lambda c: c.priority)
        return created

    def api_module_names(self) -> List[str]:
        return [f"{self.plugin_package}.{name}.api" for name in self.plugin_names]
