"""Tests for developer override parsing and change notification."""

import unittest
from unittest.mock import MagicMock

from masjid_display.core.overrides import (
    OverrideChannel,
    OverrideState,
    parse_phase_override,
    parse_ramadan_override,
)


class TestParsing(unittest.TestCase):
    def test_ramadan_tri_state(self):
        self.assertIs(parse_ramadan_override(True), True)
        self.assertIs(parse_ramadan_override(False), False)
        self.assertIs(parse_ramadan_override("true"), True)
        self.assertIs(parse_ramadan_override("OFF"), False)
        self.assertIsNone(parse_ramadan_override("auto"))
        self.assertIsNone(parse_ramadan_override(None))

    def test_unknown_ramadan_value_means_auto(self):
        with self.assertLogs("masjid_display.core.overrides", level="WARNING"):
            self.assertIsNone(parse_ramadan_override("sometimes"))

    def test_phase(self):
        self.assertEqual(parse_phase_override("in-prayer"), "in-prayer")
        self.assertIsNone(parse_phase_override(None))
        self.assertIsNone(parse_phase_override("auto"))
        with self.assertLogs("masjid_display.core.overrides", level="WARNING"):
            self.assertIsNone(parse_phase_override("dancing"))


class TestOverrideChannel(unittest.TestCase):
    def setUp(self):
        self.channel = OverrideChannel()
        self.callback = MagicMock()
        self.unregister = self.channel.register_change_callback(self.callback)

    def test_change_is_pushed(self):
        self.channel.set_phase_override("jamaat-soon")
        self.callback.assert_called_once_with(OverrideState(prayer_phase="jamaat-soon"))
        self.assertEqual(self.channel.state.prayer_phase, "jamaat-soon")

    def test_no_notification_without_change(self):
        self.channel.set_ramadan_override(True)
        self.channel.set_ramadan_override("yes")
        self.assertEqual(self.callback.call_count, 1)

    def test_unregister(self):
        self.unregister()
        self.channel.set_phase_override("in-prayer")
        self.callback.assert_not_called()

    def test_apply_config(self):
        self.channel.apply_config({"overrides": {"prayer_phase": "in-prayer", "ramadan": "false"}})
        self.assertEqual(self.channel.state, OverrideState(prayer_phase="in-prayer", ramadan=False))

    def test_apply_config_without_section_clears(self):
        self.channel.set_ramadan_override(True)
        self.channel.apply_config({})
        self.assertEqual(self.channel.state, OverrideState())

    def test_clear(self):
        self.channel.set_phase_override("in-prayer")
        self.channel.set_ramadan_override(True)
        self.channel.clear()
        self.assertEqual(self.channel.state, OverrideState())

    def test_failing_callback_does_not_block_others(self):
        self.channel.register_change_callback(MagicMock(side_effect=RuntimeError("boom")))
        after = MagicMock()
        self.channel.register_change_callback(after)
        self.channel.set_phase_override("in-prayer")
        self.callback.assert_called_once()
        after.assert_called_once()


if __name__ == "__main__":
    unittest.main()
