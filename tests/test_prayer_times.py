"""Tests for the prayer schedule formatter and its component."""

import unittest
from datetime import datetime
from unittest.mock import patch

from masjid_display.core.component_base import DerivationContext
from masjid_display.core.models import RawDailyTimes, TimeSnapshot
from masjid_display.core.overrides import OverrideState
from masjid_display.core.time_utils import parse_hhmm
from masjid_display.plugins.prayer_times.prayer_times_component import PrayerTimesComponent
from masjid_display.plugins.prayer_times.service import format_prayer_times, select_prayers

TABLE = RawDailyTimes.from_mapping({
    "fajr": "05:30",
    "sunrise": "06:45",
    "zuhr": "12:15",
    "zuhr_jamaat": "12:30",
    "asr": "15:30",
    "asr_jamaat": "16:00",
    "maghrib": "18:20",
    "maghrib_jamaat": "18:25",
    "isha": "19:45",
    "isha_jamaat": "20:00",
    "jummah_jamaat": "13:30",
    "jummah_khutbah": "13:15",
})

ADHAN_ONLY = RawDailyTimes.from_mapping({
    "fajr": "05:30",
    "sunrise": "06:45",
    "zuhr": "12:15",
    "asr": "15:30",
    "maghrib": "18:20",
    "isha": "19:45",
})

WEDNESDAY = (2025, 6, 4)
FRIDAY = (2025, 6, 6)


def at(hour, minute, second=0, day=WEDNESDAY):
    return datetime(*day, hour, minute, second)


class TestNextAndCurrent(unittest.TestCase):
    def test_morning(self):
        schedule = format_prayer_times(TABLE, at(10, 0))
        self.assertEqual(schedule.next_prayer.name, "Zuhr")
        self.assertEqual(schedule.next_prayer.time_until, "2h 15m")
        self.assertEqual(schedule.current_prayer.name, "Fajr")

    def test_sunrise_listed_but_never_next_or_current(self):
        schedule = format_prayer_times(ADHAN_ONLY, at(6, 0))
        sunrise = schedule.find("Sunrise")
        self.assertIsNotNone(sunrise)
        self.assertFalse(sunrise.is_next)
        self.assertEqual(schedule.next_prayer.name, "Zuhr")
        schedule = format_prayer_times(ADHAN_ONLY, at(7, 0))
        self.assertEqual(schedule.current_prayer.name, "Fajr")

    def test_between_adhan_and_jamaat_prayer_stays_next(self):
        raw = RawDailyTimes.from_mapping({
            "fajr": "05:30", "sunrise": "06:45", "zuhr": "12:15",
            "asr": "15:30", "asr_jamaat": "16:00", "maghrib": "18:20", "isha": "19:45",
        })
        schedule = format_prayer_times(raw, at(15, 56))
        self.assertEqual(schedule.next_prayer.name, "Asr")
        self.assertEqual(schedule.next_prayer.countdown.kind, "jamaat")
        self.assertEqual(schedule.next_prayer.time_until, "4m 0s")
        self.assertEqual(schedule.current_prayer.name, "Zuhr")

    def test_after_isha_wraps_to_tomorrow_fajr(self):
        schedule = format_prayer_times(TABLE, at(22, 17))
        fajr = schedule.next_prayer
        self.assertEqual(fajr.name, "Fajr")
        self.assertTrue(fajr.is_tomorrow)
        expected_minutes = (24 * 60 - (22 * 60 + 17)) + 5 * 60 + 30
        self.assertEqual(fajr.countdown.seconds_remaining, expected_minutes * 60)
        self.assertEqual(fajr.time_until, "7h 13m")
        self.assertEqual(schedule.current_prayer.name, "Isha")

    def test_before_fajr_current_is_last_nights_isha(self):
        schedule = format_prayer_times(TABLE, at(3, 0))
        self.assertEqual(schedule.next_prayer.name, "Fajr")
        self.assertFalse(schedule.next_prayer.is_tomorrow)
        self.assertEqual(schedule.current_prayer.name, "Isha")

    def test_exactly_at_adhan_moves_on(self):
        schedule = format_prayer_times(ADHAN_ONLY, at(12, 15))
        self.assertEqual(schedule.next_prayer.name, "Asr")
        self.assertEqual(schedule.current_prayer.name, "Zuhr")

    def test_at_most_one_next_all_day(self):
        for minute in range(0, 24 * 60):
            for second in (0, 30, 59):
                schedule = format_prayer_times(TABLE, at(minute // 60, minute % 60, second))
                self.assertEqual(sum(1 for p in schedule.prayers if p.is_next), 1)
                self.assertLessEqual(sum(1 for p in schedule.prayers if p.is_current), 1)

    def test_next_is_earliest_future_adhan(self):
        adhans = [(name, ADHAN_ONLY.minutes_for(name)) for name in ("Fajr", "Zuhr", "Asr", "Maghrib", "Isha")]
        for minute in range(0, 24 * 60):
            schedule = format_prayer_times(ADHAN_ONLY, at(minute // 60, minute % 60))
            future = [name for name, adhan in adhans if adhan > minute]
            expected = future[0] if future else "Fajr"
            self.assertEqual(schedule.next_prayer.name, expected, minute)

    def test_countdown_never_zero_before_target(self):
        for second_of_day in range(0, 24 * 3600, 7):
            now = at(second_of_day // 3600, (second_of_day // 60) % 60, second_of_day % 60)
            countdown = format_prayer_times(TABLE, now).next_prayer.countdown
            self.assertGreater(countdown.seconds_remaining, 0)
            self.assertNotIn(countdown.text, ("0m 0s", "0h 0m"))


class TestMissingData(unittest.TestCase):
    def test_missing_prayer_is_skipped(self):
        raw = RawDailyTimes.from_mapping({"fajr": "05:30", "zuhr": "12:15", "maghrib": "18:20"})
        schedule = format_prayer_times(raw, at(13, 0))
        self.assertEqual([p.name for p in schedule.prayers], ["Fajr", "Zuhr", "Maghrib"])
        self.assertEqual(schedule.next_prayer.name, "Maghrib")

    def test_unparsable_prayer_is_skipped(self):
        raw = RawDailyTimes.from_mapping({"fajr": "05:30", "asr": "25:99", "maghrib": "18:20"})
        schedule = format_prayer_times(raw, at(13, 0))
        self.assertIsNone(schedule.find("Asr"))
        self.assertEqual(schedule.next_prayer.name, "Maghrib")

    def test_absent_table(self):
        schedule = format_prayer_times(None, at(13, 0))
        self.assertEqual(schedule.prayers, [])
        self.assertIsNone(schedule.next_prayer)
        self.assertIsNone(schedule.current_prayer)

    def test_single_prayer_stays_current_after_its_jamaat(self):
        raw = RawDailyTimes.from_mapping({"zuhr": "12:15", "zuhr_jamaat": "12:30"})
        schedule = format_prayer_times(raw, at(12, 31))
        self.assertEqual(schedule.next_prayer.name, "Zuhr")
        self.assertTrue(schedule.next_prayer.is_tomorrow)
        self.assertEqual(schedule.current_prayer.name, "Zuhr")

    def test_single_prayer_has_no_current_before_its_adhan(self):
        raw = RawDailyTimes.from_mapping({"zuhr": "12:15", "zuhr_jamaat": "12:30"})
        schedule = format_prayer_times(raw, at(11, 0))
        self.assertEqual(schedule.next_prayer.name, "Zuhr")
        self.assertFalse(schedule.next_prayer.is_tomorrow)
        self.assertIsNone(schedule.current_prayer)

    def test_selection_for_absent_table(self):
        selection = select_prayers(None, 600)
        self.assertIsNone(selection.next_name)


class TestDisplay(unittest.TestCase):
    def test_twelve_hour_format(self):
        schedule = format_prayer_times(TABLE, at(10, 0), time_format="12h")
        maghrib = schedule.find("Maghrib")
        self.assertEqual(maghrib.display_time, "6:20 PM")
        self.assertEqual(maghrib.display_jamaat, "6:25 PM")
        self.assertEqual(maghrib.time, "18:20")

    def test_without_seconds(self):
        schedule = format_prayer_times(TABLE, at(12, 5, 30), show_seconds=False)
        self.assertEqual(schedule.next_prayer.time_until, "9m")

    def test_jumuah_on_friday(self):
        schedule = format_prayer_times(TABLE, at(10, 0, day=FRIDAY))
        self.assertTrue(schedule.is_jumuah_today)
        self.assertEqual(schedule.jumuah_time, "13:30")
        self.assertEqual(schedule.jumuah_khutbah_time, "13:15")

    def test_no_jumuah_midweek(self):
        schedule = format_prayer_times(TABLE, at(10, 0))
        self.assertFalse(schedule.is_jumuah_today)
        self.assertIsNone(schedule.jumuah_time)


class TestPrayerTimesComponent(unittest.TestCase):
    def setUp(self):
        self.component = PrayerTimesComponent(None, {"enable": True, "time_format": "24h"})

    def context(self, now, raw=TABLE):
        return DerivationContext(TimeSnapshot.at(now), raw, OverrideState())

    def test_selection_memoized_within_minute(self):
        with patch(
            "masjid_display.plugins.prayer_times.prayer_times_component.select_prayers",
            wraps=select_prayers,
        ) as select:
            first = self.component.derive(self.context(at(12, 5, 0)))
            second = self.component.derive(self.context(at(12, 5, 30)))
        select.assert_called_once()
        self.assertEqual(first.next_prayer.time_until, "10m 0s")
        self.assertEqual(second.next_prayer.time_until, "9m 30s")

    def test_cached_result_matches_fresh_computation(self):
        now = at(15, 56, 12)
        self.component.derive(self.context(at(15, 56, 0)))
        cached = self.component.derive(self.context(now))
        self.assertEqual(cached, format_prayer_times(TABLE, now))

    def test_day_change_clears_cache(self):
        self.component.derive(self.context(at(23, 59)))
        self.assertEqual(len(self.component.cache), 1)
        self.component.derive(self.context(datetime(2025, 6, 5, 0, 0)))
        self.assertEqual(len(self.component.cache), 1)
        self.assertNotIn(("2025-06-04", TABLE, 23 * 60 + 59), self.component.cache)

    def test_new_table_clears_cache(self):
        self.component.derive(self.context(at(10, 0)))
        self.component.on_raw_times_changed()
        self.assertEqual(len(self.component.cache), 0)

    def test_failure_gives_empty_schedule(self):
        with patch(
            "masjid_display.plugins.prayer_times.prayer_times_component.format_prayer_times",
            side_effect=RuntimeError("boom"),
        ):
            schedule = self.component.safe_derive(self.context(at(10, 0)))
        self.assertIsNone(schedule.next_prayer)
        self.assertEqual(schedule.prayers, [])

    def test_config_update_rebuilds_cache(self):
        self.component.update_config({"enable": True, "cache_max_entries": 3})
        self.assertEqual(self.component.cache.max_entries, 3)


if __name__ == "__main__":
    unittest.main()
