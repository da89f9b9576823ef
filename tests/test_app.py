"""End-to-end tests for the display engine driven by a manual clock."""

import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import yaml

from masjid_display.core.app import DisplayApp
from masjid_display.core.clock import ManualClock

CONFIG = """
components:
  Prayer Times:
    enable: true
    time_format: 24h
  Prayer Phase:
    enable: true
    jamaat_soon_minutes: 5
    in_prayer_minutes: 5
  Ramadan Mode:
    enable: true
    imsak_offset_minutes: 5
  Forbidden Times:
    enable: true
prayer_times:
  fajr: "05:30"
  sunrise: "06:45"
  zuhr: "12:15"
  asr: "15:30"
  asr_jamaat: "16:00"
  maghrib: "18:20"
  isha: "19:45"
overrides:
  prayer_phase: null
  ramadan: auto
api:
  enabled: false
"""


def make_app(test_case, start=datetime(2025, 6, 4, 15, 56, 0), config_text=CONFIG):
    tmpdir = tempfile.TemporaryDirectory()
    test_case.addCleanup(tmpdir.cleanup)
    config_file = Path(tmpdir.name) / "config.yaml"
    config_file.write_text(config_text)
    clock = ManualClock(start)
    app = DisplayApp(config_path=str(config_file), clock=clock, watch_config=False, configure_logging=False)
    test_case.addCleanup(app.stop)
    return app, clock, config_file


class TestDisplayApp(unittest.TestCase):
    def setUp(self):
        self.app, self.clock, self.config_file = make_app(self)

    def test_components_run_in_dependency_order(self):
        names = [c.name for c in self.app.components]
        self.assertEqual(names[:2], ["Prayer Times", "Prayer Phase"])
        self.assertEqual(set(names), {"Prayer Times", "Prayer Phase", "Ramadan Mode", "Forbidden Times"})

    def test_no_snapshot_before_start(self):
        self.assertIsNone(self.app.get_snapshot())

    def test_end_to_end_asr_jamaat_soon(self):
        self.app.start()
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.schedule.next_prayer.name, "Asr")
        self.assertEqual(snapshot.schedule.next_prayer.time_until, "4m 0s")
        self.assertEqual(snapshot.phase.phase, "jamaat-soon")
        self.assertEqual(snapshot.phase.prayer_name, "Asr")
        self.assertTrue(snapshot.forbidden.is_forbidden)
        self.assertEqual(snapshot.forbidden.reason, "After Asr until sunset")
        self.assertFalse(snapshot.ramadan.is_ramadan)

    def test_every_tick_produces_one_consistent_snapshot(self):
        received = []
        self.app.subscribe(received.append)
        self.app.start()
        self.clock.advance(4 * 60)
        self.assertEqual(len(received), 2)
        snapshot = received[-1]
        self.assertEqual(snapshot.time.moment, datetime(2025, 6, 4, 16, 0, 0))
        self.assertEqual(snapshot.phase.phase, "in-prayer")
        self.assertEqual(snapshot.schedule.next_prayer.name, "Maghrib")

    def test_stop_unsubscribes_from_clock(self):
        self.app.start()
        self.assertEqual(self.clock.subscriber_count, 1)
        self.app.stop()
        self.assertEqual(self.clock.subscriber_count, 0)
        self.assertFalse(self.clock.is_running)

    def test_listener_unsubscribe(self):
        listener = MagicMock()
        unsubscribe = self.app.subscribe(listener)
        self.app.start()
        unsubscribe()
        self.clock.advance()
        listener.assert_called_once()

    def test_failing_listener_does_not_stop_others(self):
        healthy = MagicMock()
        self.app.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        self.app.subscribe(healthy)
        self.app.start()
        self.clock.advance()
        self.assertEqual(healthy.call_count, 2)

    def test_failing_component_falls_back_to_default(self):
        self.app.start()
        phase = self.app.get_component("Prayer Phase")
        with patch.object(phase, "derive", side_effect=RuntimeError("boom")):
            snapshot = self.clock.advance()
        current = self.app.get_snapshot()
        self.assertEqual(current.time, snapshot)
        self.assertEqual(current.phase.phase, "countdown-adhan")
        self.assertIsNone(current.phase.prayer_name)
        self.assertEqual(current.schedule.next_prayer.name, "Asr")


class TestOverridesAndInputs(unittest.TestCase):
    def setUp(self):
        self.app, self.clock, self.config_file = make_app(self)
        self.app.start()

    def test_phase_override_applies_without_waiting_for_tick(self):
        self.app.overrides.set_phase_override("countdown-jamaat")
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.phase.phase, "countdown-jamaat")
        self.assertTrue(snapshot.phase.overridden)
        self.app.overrides.set_phase_override(None)
        self.assertEqual(self.app.get_snapshot().phase.phase, "jamaat-soon")

    def test_ramadan_override(self):
        self.app.overrides.set_ramadan_override(True)
        ramadan = self.app.get_snapshot().ramadan
        self.assertTrue(ramadan.is_ramadan)
        self.assertEqual(ramadan.ramadan_day, 15)
        self.assertEqual(ramadan.iftar_time, "18:20")
        self.assertTrue(ramadan.is_fasting_hours)

    def test_new_table_supersedes_immediately(self):
        self.app.set_raw_times({"fajr": "05:30", "zuhr": "12:15", "asr": "16:30", "maghrib": "18:20"})
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.schedule.next_prayer.name, "Asr")
        self.assertEqual(snapshot.schedule.next_prayer.time_until, "34m 0s")
        self.assertEqual(snapshot.phase.phase, "countdown-adhan")

    def test_missing_table_degrades_gracefully(self):
        self.app.set_raw_times(None)
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.schedule.prayers, [])
        self.assertEqual(snapshot.phase.phase, "countdown-adhan")
        self.assertFalse(snapshot.forbidden.is_forbidden)

    def test_config_change_updates_components_and_overrides(self):
        data = yaml.safe_load(CONFIG)
        data["components"]["Prayer Phase"]["jamaat_soon_minutes"] = 2
        data["overrides"]["ramadan"] = True
        self.config_file.write_text(yaml.safe_dump(data))
        self.app.config.reload()
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.phase.phase, "countdown-jamaat")
        self.assertTrue(snapshot.ramadan.is_ramadan)

    def test_unrelated_config_change_keeps_pushed_table(self):
        data = yaml.safe_load(CONFIG)
        data["prayer_times"] = {}
        self.config_file.write_text(yaml.safe_dump(data))
        self.app.config.reload()
        self.assertIsNone(self.app.raw_times)

        self.app.set_raw_times({"fajr": "05:30", "zuhr": "12:15", "asr": "16:30", "maghrib": "18:20"})
        self.assertEqual(self.app.get_snapshot().schedule.next_prayer.name, "Asr")

        data["logging"] = {"level": "DEBUG"}
        self.config_file.write_text(yaml.safe_dump(data))
        self.app.config.reload()
        self.assertIsNotNone(self.app.raw_times)
        snapshot = self.app.get_snapshot()
        self.assertEqual(snapshot.schedule.next_prayer.name, "Asr")
        self.assertEqual(snapshot.schedule.next_prayer.time_until, "34m 0s")

    def test_edited_config_table_replaces_pushed_table(self):
        self.app.set_raw_times({"fajr": "05:30", "zuhr": "12:15", "asr": "16:30", "maghrib": "18:20"})
        data = yaml.safe_load(CONFIG)
        data["prayer_times"]["asr"] = "16:10"
        self.config_file.write_text(yaml.safe_dump(data))
        self.app.config.reload()
        self.assertEqual(self.app.raw_times.asr, "16:10")
        self.assertEqual(self.app.get_snapshot().schedule.next_prayer.time_until, "14m 0s")


class TestDisabledComponents(unittest.TestCase):
    def test_disabled_component_uses_snapshot_default(self):
        data = yaml.safe_load(CONFIG)
        data["components"]["Forbidden Times"]["enable"] = False
        app, clock, _ = make_app(self, start=datetime(2025, 6, 4, 6, 0, 0), config_text=yaml.safe_dump(data))
        app.start()
        self.assertIsNone(app.get_component("Forbidden Times"))
        self.assertFalse(app.get_snapshot().forbidden.is_forbidden)


if __name__ == "__main__":
    unittest.main()
