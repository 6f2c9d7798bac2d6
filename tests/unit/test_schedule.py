"""Tests for next-run computation across schedule frequencies."""

from datetime import datetime, timedelta

import pytest

from autoapply.core.schedule import compute_next_run, weekday_of
from autoapply.core.schemas import ScheduleDescriptor

# 2026-03-04 is a Wednesday (schedule weekday 3)
WEDNESDAY_0800 = datetime(2026, 3, 4, 8, 0)
WEDNESDAY_1000 = datetime(2026, 3, 4, 10, 0)


class TestWeekdayOf:
    def test_sunday_is_zero(self) -> None:
        assert weekday_of(datetime(2026, 3, 1, 12, 0)) == 0

    def test_wednesday_is_three(self) -> None:
        assert weekday_of(WEDNESDAY_0800) == 3

    def test_saturday_is_six(self) -> None:
        assert weekday_of(datetime(2026, 3, 7, 12, 0)) == 6


# ---------------------------------------------------------------------------
# Hourly
# ---------------------------------------------------------------------------


class TestHourly:
    def test_adds_interval_hours(self) -> None:
        schedule = ScheduleDescriptor(frequency="hourly", hourly_interval=3)
        assert compute_next_run(schedule, WEDNESDAY_0800) == WEDNESDAY_0800 + timedelta(hours=3)

    def test_default_interval_is_one_hour(self) -> None:
        schedule = ScheduleDescriptor(frequency="hourly")
        assert compute_next_run(schedule, WEDNESDAY_0800) == datetime(2026, 3, 4, 9, 0)


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------


class TestDaily:
    def test_later_today(self) -> None:
        schedule = ScheduleDescriptor(frequency="daily", time="09:30")
        assert compute_next_run(schedule, WEDNESDAY_0800) == datetime(2026, 3, 4, 9, 30)

    def test_already_passed_rolls_to_tomorrow(self) -> None:
        schedule = ScheduleDescriptor(frequency="daily", time="09:30")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 5, 9, 30)

    def test_exactly_now_rolls_to_tomorrow(self) -> None:
        schedule = ScheduleDescriptor(frequency="daily", time="08:00")
        assert compute_next_run(schedule, WEDNESDAY_0800) == datetime(2026, 3, 5, 8, 0)

    @pytest.mark.parametrize("minute_offset", [0, 1, 59, 600, 1439])
    def test_strictly_future_within_a_day(self, minute_offset: int) -> None:
        schedule = ScheduleDescriptor(frequency="daily", time="08:00")
        now = WEDNESDAY_0800 + timedelta(minutes=minute_offset, seconds=30)
        result = compute_next_run(schedule, now)
        assert now < result <= now + timedelta(hours=24)

    def test_month_rollover(self) -> None:
        schedule = ScheduleDescriptor(frequency="daily", time="06:00")
        now = datetime(2026, 3, 31, 23, 0)
        assert compute_next_run(schedule, now) == datetime(2026, 4, 1, 6, 0)


# ---------------------------------------------------------------------------
# Weekly / custom
# ---------------------------------------------------------------------------


class TestWeekly:
    def test_later_today_when_today_selected(self) -> None:
        schedule = ScheduleDescriptor(frequency="weekly", days=frozenset({3}), time="09:00")
        assert compute_next_run(schedule, WEDNESDAY_0800) == datetime(2026, 3, 4, 9, 0)

    def test_today_passed_picks_next_selected_day(self) -> None:
        schedule = ScheduleDescriptor(frequency="weekly", days=frozenset({3, 5}), time="09:00")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 6, 9, 0)

    def test_wraps_to_next_week(self) -> None:
        """Only Monday selected, now is Wednesday → following Monday."""
        schedule = ScheduleDescriptor(frequency="weekly", days=frozenset({1}), time="09:00")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 9, 9, 0)

    def test_only_today_selected_and_passed_is_one_week_later(self) -> None:
        schedule = ScheduleDescriptor(frequency="custom", days=frozenset({3}), time="09:00")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 11, 9, 0)

    def test_sunday_selected(self) -> None:
        schedule = ScheduleDescriptor(frequency="custom", days=frozenset({0}), time="07:15")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 8, 7, 15)

    def test_result_lands_on_configured_day(self) -> None:
        days = frozenset({2, 4, 6})
        schedule = ScheduleDescriptor(frequency="weekly", days=days, time="12:00")
        now = WEDNESDAY_0800
        for hours in range(0, 24 * 8, 5):
            moment = now + timedelta(hours=hours)
            result = compute_next_run(schedule, moment)
            assert result > moment
            assert weekday_of(result) in days
            # earliest: no configured instant between moment and result
            probe = moment
            while probe.date() < result.date():
                probe += timedelta(days=1)
                candidate = probe.replace(hour=12, minute=0, second=0, microsecond=0)
                if candidate < result:
                    assert weekday_of(candidate) not in days

    def test_empty_days_behaves_like_daily(self) -> None:
        schedule = ScheduleDescriptor(frequency="weekly", time="09:00")
        assert compute_next_run(schedule, WEDNESDAY_1000) == datetime(2026, 3, 5, 9, 0)
