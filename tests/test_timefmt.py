"""Tests for day-boundary and relative-time helpers."""

import os
import time
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import ms
from familyverse.core.timefmt import (
    DAY_MS,
    HOUR_MS,
    MINUTE_MS,
    WEEK_MS,
    ensure_aware,
    format_relative_time,
    from_epoch_ms,
    is_action_done_today,
    start_of_day,
    to_epoch_ms,
)


@pytest.fixture
def system_zone_new_york():
    """Make US Eastern the process-local zone for one test (POSIX rule, no zone files needed)."""
    saved = os.environ.get("TZ")
    os.environ["TZ"] = "EST5EDT,M3.2.0,M11.1.0"
    time.tzset()
    yield
    if saved is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = saved
    time.tzset()


# =============================================================================
# Conversions
# =============================================================================


class TestConversions:
    """Tests for epoch millisecond conversions."""

    def test_epoch_is_zero(self) -> None:
        assert to_epoch_ms(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_millisecond_precision_is_kept(self) -> None:
        """Sub-second parts survive the round trip to integer milliseconds."""
        moment = datetime(2024, 3, 5, 12, 0, 0, 999_000, tzinfo=timezone.utc)
        assert to_epoch_ms(moment) % 1000 == 999
        assert from_epoch_ms(to_epoch_ms(moment), timezone.utc) == moment

    def test_naive_values_take_the_given_zone(self, tz: timezone) -> None:
        aware = ensure_aware(datetime(2024, 3, 5, 8, 0), tz)
        assert aware.tzinfo == tz
        assert aware.hour == 8


# =============================================================================
# Day Boundary
# =============================================================================


class TestStartOfDay:
    """Tests for start_of_day and is_action_done_today."""

    def test_all_sub_day_fields_zeroed(self, noon: datetime, tz: timezone) -> None:
        midnight = start_of_day(noon.replace(minute=41, second=7, microsecond=123_000), tz)
        assert (midnight.hour, midnight.minute, midnight.second, midnight.microsecond) == (0, 0, 0, 0)
        assert midnight.date() == noon.date()

    def test_boundary_follows_local_zone(self, tz: timezone) -> None:
        """02:00 UTC on the 6th is still the 5th in UTC-5."""
        now = datetime(2024, 3, 6, 2, 0, tzinfo=timezone.utc)
        midnight = start_of_day(now, tz)
        assert midnight == datetime(2024, 3, 5, 0, 0, tzinfo=tz)

    def test_midnight_before_spring_forward_keeps_winter_offset(self) -> None:
        """New York switches to EDT at 02:00 on 2024-03-10; midnight is still EST."""
        new_york = ZoneInfo("America/New_York")
        midnight = start_of_day(datetime(2024, 3, 10, 12, 0, tzinfo=new_york), new_york)

        assert midnight.utcoffset() == timedelta(hours=-5)
        assert to_epoch_ms(midnight) == ms(datetime(2024, 3, 10, 5, 0, tzinfo=timezone.utc))

    @pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
    def test_system_zone_midnight_across_dst(self, system_zone_new_york: None) -> None:
        """Without a configured zone, midnight uses the local offset of midnight, not of now."""
        now = datetime(2024, 3, 10, 17, 0, tzinfo=timezone.utc)

        midnight = start_of_day(now)

        assert to_epoch_ms(midnight) == ms(datetime(2024, 3, 10, 5, 0, tzinfo=timezone.utc))

    def test_absent_action_is_not_today(self, noon: datetime, tz: timezone) -> None:
        assert is_action_done_today(0, noon, tz) is False

    def test_last_millisecond_of_yesterday(self, noon: datetime, tz: timezone) -> None:
        yesterday_end = datetime(2024, 3, 4, 23, 59, 59, 999_000, tzinfo=tz)
        assert is_action_done_today(ms(yesterday_end), noon, tz) is False

    def test_first_millisecond_of_today(self, noon: datetime, tz: timezone) -> None:
        today_start = datetime(2024, 3, 5, 0, 0, 0, 0, tzinfo=tz)
        assert is_action_done_today(ms(today_start), noon, tz) is True

    def test_action_just_before_now(self, noon: datetime, tz: timezone) -> None:
        assert is_action_done_today(ms(noon) - 1, noon, tz) is True


# =============================================================================
# Relative Time
# =============================================================================


class TestFormatRelativeTime:
    """Tests for relative time labels and their exact boundaries."""

    NOW_MS = 1_709_658_000_000  # 2024-03-05 12:00 in UTC-5

    @pytest.mark.parametrize(
        "delta_ms, expected",
        [
            (0, "just now"),
            (59_999, "just now"),
            (60_000, "1m ago"),
            (119_999, "1m ago"),
            (3_599_999, "59m ago"),
            (3_600_000, "1h ago"),
            (DAY_MS - 1, "23h ago"),
            (DAY_MS, "1d ago"),
            (WEEK_MS - 1, "6d ago"),
        ],
    )
    def test_thresholds(self, delta_ms: int, expected: str, tz: timezone) -> None:
        assert format_relative_time(self.NOW_MS - delta_ms, self.NOW_MS, tz) == expected

    def test_exactly_one_week_is_a_calendar_date(self, tz: timezone) -> None:
        now = datetime(2024, 3, 12, 12, 0, tzinfo=tz)
        assert format_relative_time(ms(now) - WEEK_MS, ms(now), tz) == "Mar 5"

    def test_calendar_date_has_no_leading_zero(self, tz: timezone) -> None:
        now = datetime(2024, 11, 30, 9, 0, tzinfo=tz)
        shared = datetime(2024, 11, 1, 9, 0, tzinfo=tz)
        assert format_relative_time(ms(shared), ms(now), tz) == "Nov 1"

    def test_calendar_date_uses_local_zone(self, tz: timezone) -> None:
        """03:00 UTC on Mar 6 is still Mar 5 in UTC-5."""
        shared = datetime(2024, 3, 6, 3, 0, tzinfo=timezone.utc)
        now_ms = ms(shared) + 30 * DAY_MS
        assert format_relative_time(ms(shared), now_ms, tz) == "Mar 5"

    def test_future_timestamp_reads_as_just_now(self) -> None:
        """Clock skew between devices must not produce negative labels."""
        assert format_relative_time(self.NOW_MS + 5 * HOUR_MS, self.NOW_MS) == "just now"

    def test_minutes_are_floored(self) -> None:
        assert format_relative_time(self.NOW_MS - (5 * MINUTE_MS + 59_000), self.NOW_MS) == "5m ago"
