"""Tests for temporal context extraction."""

from datetime import datetime

import pytest

from reflectibot.models import TimeOfDay
from reflectibot.time_context import (
    get_time_of_day, extract_relative_time, extract_time_context,
    generate_time_based_context, should_prioritize_memory,
)


class TestTimeOfDay:

    @pytest.mark.parametrize("hour,expected", [
        (4, TimeOfDay.NIGHT),
        (5, TimeOfDay.MORNING),
        (11, TimeOfDay.MORNING),
        (12, TimeOfDay.AFTERNOON),
        (16, TimeOfDay.AFTERNOON),
        (17, TimeOfDay.EVENING),
        (21, TimeOfDay.EVENING),
        (22, TimeOfDay.NIGHT),
        (0, TimeOfDay.NIGHT),
    ])
    def test_boundaries(self, hour, expected):
        assert get_time_of_day(datetime(2024, 3, 15, hour, 0)) == expected


class TestRelativeTime:

    def test_yesterday(self):
        assert extract_relative_time("I had fun yesterday") == "yesterday"

    def test_first_rule_wins(self):
        assert extract_relative_time("today and tomorrow") == "today"

    def test_earlier_maps_to_earlier_today(self):
        assert extract_relative_time("I saw it earlier") == "earlier today"

    def test_default_is_now(self):
        assert extract_relative_time("I like cheese") == "now"
        assert extract_relative_time(None) == "now"


class TestExtractTimeContext:

    def test_weekday(self, friday_morning):
        tc = extract_time_context("I had fun yesterday", friday_morning)
        assert tc.timestamp == friday_morning
        assert tc.time_of_day == TimeOfDay.MORNING
        assert tc.day_of_week == "Friday"
        assert tc.is_weekend is False
        assert tc.relative_time == "yesterday"

    def test_weekend(self, saturday_evening):
        tc = extract_time_context("hi", saturday_evening)
        assert tc.day_of_week == "Saturday"
        assert tc.is_weekend is True
        assert tc.time_of_day == TimeOfDay.EVENING

    def test_defaults_to_now(self):
        tc = extract_time_context("hi")
        assert isinstance(tc.timestamp, datetime)


class TestTimeBasedContext:

    def test_weekday_plain(self, friday_morning):
        tc = extract_time_context("hello", friday_morning)
        assert generate_time_based_context(tc) == "It's morning on Friday"

    def test_weekend_with_reference(self, saturday_evening):
        tc = extract_time_context("I was tired last night", saturday_evening)
        assert generate_time_based_context(tc) == (
            "It's evening on Saturday (weekend), and they're referring to last night"
        )


class TestShouldPrioritizeMemory:

    LONG = "I spent the whole afternoon thinking about where I want to be in five years"

    def test_significant_event_always(self, friday_morning):
        tc = extract_time_context("It's my anniversary", friday_morning)
        assert should_prioritize_memory(tc, "It's my anniversary")

    def test_long_message_in_personal_time(self, saturday_evening):
        tc = extract_time_context(self.LONG, saturday_evening)
        assert should_prioritize_memory(tc, self.LONG)

    def test_short_message_in_personal_time(self, saturday_evening):
        tc = extract_time_context("ok", saturday_evening)
        assert not should_prioritize_memory(tc, "ok")

    def test_long_message_on_weekday_morning(self, friday_morning):
        tc = extract_time_context(self.LONG, friday_morning)
        assert not should_prioritize_memory(tc, self.LONG)
