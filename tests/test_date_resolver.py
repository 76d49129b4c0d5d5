"""
Tests for free-text date/time resolution.
"""

from datetime import datetime, timezone

import pytest

from meeting_prep.parsers.date_resolver import (
    _iso_range_start,
    _slash_date,
    normalize_date_text,
    resolve_date,
    resolve_relative_day,
    to_24_hour,
)

# Monday
NOW = datetime(2026, 2, 16, 12, 0)


class TestResolveRelativeDay:

    def test_today_is_midnight(self):
        assert resolve_relative_day("today", NOW) == datetime(2026, 2, 16)

    def test_yesterday(self):
        assert resolve_relative_day("Yesterday", NOW) == datetime(2026, 2, 15)

    def test_last_same_weekday_goes_back_a_full_week(self):
        assert resolve_relative_day("last Monday", NOW) == datetime(2026, 2, 9)

    def test_last_earlier_weekday(self):
        assert resolve_relative_day("last Friday", NOW) == datetime(2026, 2, 13)

    def test_last_later_weekday_is_previous_week(self):
        assert resolve_relative_day("last tuesday", NOW) == datetime(2026, 2, 10)

    def test_unknown_weekday(self):
        assert resolve_relative_day("last Someday", NOW) is None

    def test_unrelated_text(self):
        assert resolve_relative_day("next week", NOW) is None


class TestToTwentyFourHour:

    @pytest.mark.parametrize("hour,meridiem,expected", [
        (12, "AM", 0),
        (12, "pm", 12),
        (1, "PM", 13),
        (11, "am", 11),
        (9, None, 9),
        (15, "PM", 15),
    ])
    def test_conversion(self, hour, meridiem, expected):
        assert to_24_hour(hour, meridiem) == expected


class TestNormalizeDateText:

    def test_folds_unicode_dashes(self):
        assert normalize_date_text("2026‑02‑17 09:00–10:00") == "2026-02-17 09:00-10:00"

    def test_strips_bold_and_footnotes(self):
        assert normalize_date_text("**2026-02-17** [1](https://x) [2]") == "2026-02-17"


class TestResolveDate:

    def test_relative_day_with_time(self):
        assert resolve_date("yesterday at 3:00 PM", NOW) == datetime(2026, 2, 15, 15, 0)

    def test_relative_day_without_at(self):
        assert resolve_date("today 9:05 am", NOW) == datetime(2026, 2, 16, 9, 5)

    def test_midnight_am(self):
        assert resolve_date("Today at 12:30 AM", NOW) == datetime(2026, 2, 16, 0, 30)

    def test_last_weekday_with_time(self):
        assert resolve_date("last Monday at 10:00 AM", NOW) == datetime(2026, 2, 9, 10, 0)

    def test_bare_relative_day(self):
        assert resolve_date("yesterday", NOW) == datetime(2026, 2, 15)

    def test_iso_local(self):
        assert resolve_date("2026-02-17T09:00:00", NOW) == datetime(2026, 2, 17, 9, 0)

    def test_iso_with_offset_converted_to_local(self):
        expected = datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        result = resolve_date("2026-02-17T09:00:00Z", NOW)
        assert result == expected
        assert result.tzinfo is None

    def test_rfc2822(self):
        expected = datetime(2026, 2, 17, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert resolve_date("Tue, 17 Feb 2026 10:00:00 GMT", NOW) == expected

    def test_date_and_time_with_space(self):
        assert resolve_date("2026-02-17 09:30", NOW) == datetime(2026, 2, 17, 9, 30)

    def test_time_range_takes_start(self):
        assert resolve_date("2026-02-17, 09:00-10:00", NOW) == datetime(2026, 2, 17, 9, 0)

    def test_time_range_without_comma_is_not_an_offset(self):
        assert resolve_date("2026-02-17 09:00 – 10:00", NOW) == datetime(2026, 2, 17, 9, 0)

    def test_month_name_first_pm(self):
        assert resolve_date("February 17, 2026 2:30 PM", NOW) == datetime(2026, 2, 17, 14, 30)

    def test_abbreviated_month_first_keeps_pm(self):
        assert resolve_date("Feb 17, 2026, 2:30 PM", NOW) == datetime(2026, 2, 17, 14, 30)

    def test_slash_date_is_day_first(self):
        assert resolve_date("03/02/2026 14:00", NOW) == datetime(2026, 2, 3, 14, 0)

    def test_slash_date_falls_back_to_month_first(self):
        assert resolve_date("02/17/2026 09:00", NOW) == datetime(2026, 2, 17, 9, 0)

    def test_iso_date_with_meridiem(self):
        assert resolve_date("2026-02-17 2:00 PM", NOW) == datetime(2026, 2, 17, 14, 0)
        assert resolve_date("2026-02-17, 12:30 AM", NOW) == datetime(2026, 2, 17, 0, 30)
        assert resolve_date("2026-02-17 12:45 pm", NOW) == datetime(2026, 2, 17, 12, 45)

    def test_iso_time_range_with_meridiem_takes_start(self):
        assert resolve_date("2026-02-17 2:00 PM - 3:00 PM", NOW) == datetime(2026, 2, 17, 14, 0)
        assert _iso_range_start("2026-02-17,2:00 PM", NOW) == datetime(2026, 2, 17, 14, 0)
        assert _iso_range_start("2026-02-17 12:10 AM", NOW) == datetime(2026, 2, 17, 0, 10)
        assert _iso_range_start("2026-02-17 12:10 PM", NOW) == datetime(2026, 2, 17, 12, 10)

    def test_slash_date_with_meridiem(self):
        assert resolve_date("17/02/2026 2:00 PM", NOW) == datetime(2026, 2, 17, 14, 0)
        assert resolve_date("2/17/2026 2:00 PM", NOW) == datetime(2026, 2, 17, 14, 0)
        assert _slash_date("17/02/2026, 12:05 AM", NOW) == datetime(2026, 2, 17, 0, 5)
        assert _slash_date("17/02/2026 12:05 PM", NOW) == datetime(2026, 2, 17, 12, 5)

    def test_date_string_with_weekday(self):
        assert resolve_date("Mon Feb 16 2026", NOW) == datetime(2026, 2, 16)

    def test_bare_iso_date(self):
        assert resolve_date("2026-02-17", NOW) == datetime(2026, 2, 17)

    def test_day_first_with_weekday_and_time(self):
        assert resolve_date("Tuesday, 17 February 2026, 10:00 AM", NOW) == datetime(2026, 2, 17, 10, 0)

    def test_day_first_date_only(self):
        assert resolve_date("17 Feb 2026", NOW) == datetime(2026, 2, 17)

    def test_markdown_noise(self):
        assert resolve_date("**2026‑02‑17T09:00:00** [1]", NOW) == datetime(2026, 2, 17, 9, 0)

    @pytest.mark.parametrize("text", [None, "", "   ", "not a date", "TBD", "sometime next week"])
    def test_unresolvable_returns_none(self, text):
        assert resolve_date(text, NOW) is None

    def test_impossible_date_returns_none(self):
        assert resolve_date("2026-13-45 10:00", NOW) is None

    def test_defaults_to_current_time(self):
        result = resolve_date("today")
        assert result == datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
