#!/usr/bin/env python3
"""
Tests for the normal/overtime split of a day's four punches.
"""
import pytest

from models.time_record import HoursBreakdown
from utils.hours import (
    calculate_pay,
    calculate_working_hours,
    lunch_break_minutes,
    parse_time,
)


def test_parse_time():
    assert parse_time("00:00") == 0
    assert parse_time("08:30") == 510
    assert parse_time("17:10:59") == 1030
    assert parse_time("23:59") == 1439


@pytest.mark.parametrize("value", [None, "", "8", "ab:cd", "25:00", "12:60"])
def test_parse_time_rejects_malformed(value):
    assert parse_time(value) is None


@pytest.mark.parametrize(
    "args",
    [
        (None, "12:00", "13:00", "17:00"),
        ("09:00", "12:00", "13:00", None),
        ("garbage", None, None, "17:00"),
    ],
)
def test_missing_bookend_returns_zero(args):
    assert calculate_working_hours(*args) == HoursBreakdown(
        total_hours=0, normal_hours=0, overtime_hours=0
    )


def test_regular_day_with_lunch():
    result = calculate_working_hours("09:00", "12:00", "13:00", "17:00")
    assert result.total_hours == 7
    assert result.normal_hours == 7
    assert result.overtime_hours == 0


def test_small_overage_is_absorbed():
    # 8h10m worked, within the 15 minute tolerance
    result = calculate_working_hours("08:00", "12:00", "13:00", "17:10")
    assert result.total_hours == 8
    assert result.normal_hours == 8
    assert result.overtime_hours == 0


def test_fifteen_minute_overage_is_still_absorbed():
    result = calculate_working_hours("08:00", "12:00", "13:00", "17:15")
    assert result.total_hours == 8
    assert result.overtime_hours == 0


def test_overage_beyond_tolerance_counts_fully():
    result = calculate_working_hours("08:00", "12:00", "13:00", "17:16")
    assert result.total_hours == pytest.approx(8 + 16 / 60)
    assert result.normal_hours == 8
    assert result.overtime_hours == pytest.approx(16 / 60)


def test_overtime_day():
    result = calculate_working_hours("08:00", "12:00", "13:00", "18:00")
    assert result.total_hours == 9
    assert result.normal_hours == 8
    assert result.overtime_hours == 1


def test_missing_or_inverted_lunch_is_ignored():
    assert calculate_working_hours("09:00", None, "13:00", "17:00").total_hours == 8
    assert calculate_working_hours("09:00", "13:00", "12:00", "17:00").total_hours == 8
    assert lunch_break_minutes("12:00", None) == 0
    assert lunch_break_minutes("12:00", "12:45") == 45


def test_overnight_shift_clamps_to_zero():
    result = calculate_working_hours("22:00", None, None, "06:00")
    assert result == HoursBreakdown()


def test_split_invariants():
    for clock_out in ("12:00", "17:00", "17:20", "20:45", "23:59"):
        result = calculate_working_hours("07:30", "11:30", "12:15", clock_out)
        assert result.normal_hours + result.overtime_hours == pytest.approx(result.total_hours)
        assert result.normal_hours <= 8
        assert result.overtime_hours >= 0


def test_calculation_is_idempotent():
    args = ("08:07", "12:01", "12:59", "18:33")
    assert calculate_working_hours(*args) == calculate_working_hours(*args)


def test_calculate_pay():
    pay = calculate_pay(normal_hours=8, overtime_hours=1.5, hourly_rate=10, overtime_rate=15)
    assert pay == {"normal_pay": 80, "overtime_pay": 22.5, "total_pay": 102.5}
