"""
Inspection API for the display engine, served by uvicorn from a daemon thread.

    GET /api/components     registered components, enabled flag, config, load errors
    GET /api/display        the DisplaySnapshot of the latest tick

Each plugin with an api module (get_router(display_app)) is mounted under
/api/components/<plugin>/. Interactive docs at /docs.
"""
import importlib
import logging
import threading
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException

from masjid_display.core.models import DisplaySnapshot

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765


def _include_plugin_routers(app: FastAPI, display_app: Any) -> None:
    plugin_manager = display_app.plugin_manager
    for module_name in plugin_manager.api_module_names():
        plugin = module_name.split(".")[-2]
        try:
            api_module = importlib.import_module(module_name)
        except ModuleNotFoundError:
            logger.debug(f"Plugin {plugin} has no API module")
            continue
        get_router = getattr(api_module, "get_router", None)
        if not callable(get_router):
            continue
        try:
            router = get_router(display_app)
        except Exception as e:
            logger.warning(f"Failed to build API router for plugin {plugin}: {e}", exc_info=True)
            continue
        if router is not None:
            app.include_router(router, prefix=f"/api/components/{plugin}")
            logger.debug(f"Mounted API for plugin {plugin}")


def create_app(display_app: Any) -> FastAPI:
    """FastAPI app bound to one DisplayApp"""
    app = FastAPI(title="Masjid Display API", description="Live display state, components and overrides")

    @app.get("/api/components")
    def list_components() -> List[Dict[str, Any]]:
        plugin_manager = display_app.plugin_manager
        active = {component.name for component in display_app.components}
        result = []
        for name in plugin_manager.components:
            config = display_app.config.get_component_config(name)
            result.append({
                "name": name,
                "plugin": plugin_manager.component_plugins.get(name),
                "enabled": name in active,
                "config": config if isinstance(config, dict) else {},
            })
        for plugin, error in plugin_manager.load_errors.items():
            result.append({"name": None, "plugin": plugin, "enabled": False, "error": error})
        return result

    @app.get("/api/display", response_model=DisplaySnapshot)
    def get_display() -> DisplaySnapshot:
        snapshot = display_app.get_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="Display engine has not ticked yet")
        return snapshot

    _include_plugin_routers(app, display_app)
    return app


def run_api_server(display_app: Any) -> None:
    """
    Serve the API in a daemon thread when api.enabled is set.
    api.host and api.port default to 127.0.0.1:8765.
    """
    api_config = display_app.config.data.get("api") or {}
    if not api_config.get("enabled", False):
        logger.info(f"API server disabled (set api.enabled in {display_app.config.config_file} to enable)")
        return

    host = api_config.get("host", DEFAULT_HOST)
    port = int(api_config.get("port", DEFAULT_PORT))
    fastapi_app = create_app(display_app)

    def serve():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port, log_level="warning")
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    threading.Thread(target=serve, name="api-server", daemon=True).start()
