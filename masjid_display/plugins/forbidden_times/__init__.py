from .forbidden_times_component import ForbiddenTimesComponent

def register_components(plugin_manager):
    plugin_manager.register_component(ForbiddenTimesComponent)
