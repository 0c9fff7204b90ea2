"""
Tests for reporting period keys and bounds
"""
from datetime import datetime, timezone, timedelta

import pytest

from nectardesk_api.utils.period_utils import (
    calculate_period_info, format_period_label, to_naive_utc
)


class TestDailyPeriod:
    def test_key_and_bounds(self):
        period = calculate_period_info(datetime(2024, 3, 5, 14, 30), "daily")
        assert period.key == "2024-03-05"
        assert period.start == datetime(2024, 3, 5, 0, 0, 0)
        assert period.end == datetime(2024, 3, 5, 23, 59, 59)


class TestWeeklyPeriod:
    @pytest.mark.parametrize("value, expected", [
        (datetime(2023, 1, 1), "2023-W01"),   # a Sunday, first day of the year
        (datetime(2023, 1, 8), "2023-W02"),
        (datetime(2024, 6, 15), "2024-W24"),
        (datetime(2024, 12, 31), "2024-W53"),
        (datetime(2025, 1, 1), "2025-W01"),   # week started in December
    ])
    def test_week_keys(self, value, expected):
        assert calculate_period_info(value, "weekly").key == expected

    def test_week_starts_on_sunday(self):
        period = calculate_period_info(datetime(2024, 6, 12, 9, 0), "weekly")
        assert period.start == datetime(2024, 6, 9)
        assert period.start.weekday() == 6
        assert period.end == datetime(2024, 6, 15, 23, 59, 59, 999000)

    def test_week_start_may_precede_the_year(self):
        period = calculate_period_info(datetime(2025, 1, 1, 12, 0), "weekly")
        assert period.start == datetime(2024, 12, 29)
        assert period.key.startswith("2025-")


class TestMonthlyPeriod:
    def test_leap_february(self):
        period = calculate_period_info(datetime(2024, 2, 10), "monthly")
        assert period.key == "2024-02"
        assert period.start == datetime(2024, 2, 1)
        assert period.end == datetime(2024, 2, 29, 23, 59, 59)


class TestQuarterlyPeriod:
    def test_second_quarter(self):
        period = calculate_period_info(datetime(2024, 5, 10), "quarterly")
        assert period.key == "2024-Q2"
        assert period.start == datetime(2024, 4, 1)
        assert period.end == datetime(2024, 6, 30, 23, 59, 59)

    @pytest.mark.parametrize("month, quarter", [(1, 1), (3, 1), (4, 2), (9, 3), (10, 4), (12, 4)])
    def test_quarter_number(self, month, quarter):
        assert calculate_period_info(datetime(2023, month, 15), "quarterly").key == f"2023-Q{quarter}"


def test_unknown_period_type_raises():
    with pytest.raises(ValueError):
        calculate_period_info(datetime(2024, 1, 1), "yearly")


def test_same_timestamp_same_bucket():
    value = datetime(2024, 7, 4, 18, 45)
    for period_type in ("daily", "weekly", "monthly", "quarterly"):
        assert calculate_period_info(value, period_type) == calculate_period_info(value, period_type)


def test_period_labels():
    start = datetime(2024, 4, 1)
    assert format_period_label("weekly", "2024-W07", start) == "Week 07"
    assert format_period_label("quarterly", "2024-Q2", start) == "Q2 2024"
    assert format_period_label("monthly", "2024-04", start) == "Apr 2024"


def test_to_naive_utc():
    aware = datetime(2024, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == datetime(2024, 1, 1, 3, 0)
    assert to_naive_utc(datetime(2024, 1, 1)) == datetime(2024, 1, 1)
    assert to_naive_utc(None) is None
