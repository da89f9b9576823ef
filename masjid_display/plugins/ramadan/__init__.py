from .ramadan_component import RamadanComponent

def register_components(plugin_manager):
    plugin_manager.register_component(RamadanComponent)
