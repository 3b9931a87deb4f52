"""
Unit tests for decoding stored schedule records.
"""

import logging

from availability.records import (
    decode_day_windows, decode_days, decode_schedule, decode_special_binding, normalize_schedule,
)
from availability.schedules import DISABLED, ScheduleMode
from availability.timeofday import Weekday, parse_hhmm
from availability.windows import Window


class TestDecodeSchedule:

    def test_missing_or_disabled(self):
        assert decode_schedule(None) is None
        assert decode_schedule({"enabled": False, "startTime": "09:00", "endTime": "10:00"}) is None

    def test_daily(self):
        schedule = decode_schedule({"enabled": True, "type": "daily", "startTime": "07:00", "endTime": "11:00"})

        assert schedule.mode is ScheduleMode.UNIFORM
        assert schedule.uniform_window == Window(parse_hhmm("07:00"), parse_hhmm("11:00"))

    def test_daily_without_times_is_unconstrained(self):
        assert decode_schedule({"enabled": True, "type": "daily"}) is None

    def test_custom_days(self):
        schedule = decode_schedule({"enabled": True, "type": "custom", "customDays": [
            {"day": 5, "enabled": True, "startTime": "18:00", "endTime": "01:00"},
            {"day": 6, "enabled": False, "startTime": None, "endTime": None},
        ]})

        assert schedule.mode is ScheduleMode.PER_DAY
        assert schedule.enabled_days == frozenset({Weekday.FRIDAY})
        assert schedule.per_day[Weekday.FRIDAY].window.is_overnight

    def test_legacy_days_share_one_window(self):
        schedule = decode_schedule({"enabled": True, "type": "custom", "days": [0, 6],
                                    "startTime": "08:00", "endTime": "12:00"})

        assert schedule.enabled_days == frozenset({Weekday.SUNDAY, Weekday.SATURDAY})
        assert not schedule.is_open(Weekday.MONDAY, parse_hhmm("09:00"))
        assert schedule.is_open(Weekday.SUNDAY, parse_hhmm("09:00"))

    def test_malformed_record_is_ignored_with_warning(self, caplog, monkeypatch):
        # The app loggers do not propagate to the root handler caplog listens on
        monkeypatch.setattr(logging.getLogger("availability"), "propagate", True)
        record = {"enabled": True, "type": "daily", "startTime": "9 o'clock", "endTime": "10:00"}

        with caplog.at_level(logging.WARNING, logger="availability.records"):
            assert decode_schedule(record, label="for category 'Breakfast'") is None

        assert "Ignoring malformed schedule for category 'Breakfast'" in caplog.text

    def test_degenerate_window_is_ignored(self):
        assert decode_schedule({"enabled": True, "startTime": "10:00", "endTime": "10:00"}) is None


class TestNormalizeSchedule:

    def test_defaults(self):
        assert normalize_schedule(None) == {
            "enabled": False, "type": "daily", "startTime": None, "endTime": None,
            "days": [], "customDays": [],
        }

    def test_keeps_client_shape(self):
        record = normalize_schedule({
            "enabled": True, "type": "custom", "days": ["3", 1, 1],
            "customDays": [{"day": 2, "startTime": "10:00", "endTime": "12:00"}, "junk", {"enabled": True}],
        })

        assert record["days"] == [1, 3]
        assert record["customDays"] == [{"day": 2, "enabled": True, "startTime": "10:00", "endTime": "12:00"}]


class TestSpecialItemRecords:

    def test_decode_days_skips_invalid(self):
        assert decode_days([0, "2", 9, None]) == frozenset({Weekday.SUNDAY, Weekday.TUESDAY})

    def test_decode_day_windows_skips_bad_entries(self):
        windows = decode_day_windows({
            "1": {"startTime": "11:00", "endTime": "15:00"},
            "2": {"startTime": "11:00", "endTime": "11:00"},
            "x": {"startTime": "11:00", "endTime": "15:00"},
            "3": {},
        })

        assert windows == {Weekday.MONDAY: Window(660, 900)}

    def test_binding_prefers_item_window(self):
        global_windows = {Weekday.MONDAY: Window(660, 900), Weekday.TUESDAY: Window(660, 900)}
        binding = decode_special_binding([1], {"1": {"startTime": "18:00", "endTime": "22:00"}}, global_windows)

        assert binding.window_for(Weekday.MONDAY) == Window(1080, 1320)
        assert binding.window_for(Weekday.TUESDAY) is DISABLED
