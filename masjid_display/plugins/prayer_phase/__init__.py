from .prayer_phase_component import PrayerPhaseComponent

def register_components(plugin_manager):
    plugin_manager.register_component(PrayerPhaseComponent)
