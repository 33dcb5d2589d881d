from typing import Dict, Optional

from models.time_record import HoursBreakdown

STANDARD_WORK_MINUTES = 480  # 8-hour day
OVERAGE_TOLERANCE_MINUTES = 15  # small over-punches are absorbed into the 8h
MAX_NORMAL_HOURS = STANDARD_WORK_MINUTES / 60.0


def parse_time(time_str: Optional[str]) -> Optional[int]:
    """Convert an "HH:MM" (or "HH:MM:SS") string into minutes since midnight.

    Returns None for missing or malformed values instead of raising.
    """
    if not time_str:
        return None
    parts = time_str.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def lunch_break_minutes(lunch_start: Optional[str], lunch_end: Optional[str]) -> int:
    """Lunch only counts when both ends are present and in order."""
    start = parse_time(lunch_start)
    end = parse_time(lunch_end)
    if start is None or end is None or end <= start:
        return 0
    return end - start


def apply_overage_tolerance(worked_minutes: int) -> int:
    """Clamp 8h01m..8h15m back to exactly 8h so late clock-outs do not create overtime."""
    overage = worked_minutes - STANDARD_WORK_MINUTES
    if 0 < overage <= OVERAGE_TOLERANCE_MINUTES:
        return STANDARD_WORK_MINUTES
    return worked_minutes


def calculate_working_hours(
    clock_in: Optional[str],
    lunch_start: Optional[str],
    lunch_end: Optional[str],
    clock_out: Optional[str],
) -> HoursBreakdown:
    """Split one day's punches into normal and overtime hours.

    A day is only "complete" with both clock-in and clock-out; otherwise the
    breakdown is all zeros. Overnight shifts are not wrapped past midnight:
    a clock-out earlier than the clock-in yields zero hours.

    Args:
        clock_in: "HH:MM" clock-in time.
        lunch_start: Optional "HH:MM" lunch start.
        lunch_end: Optional "HH:MM" lunch end.
        clock_out: "HH:MM" clock-out time.

    Returns:
        HoursBreakdown: total, normal (capped at 8h) and overtime hours.
    """
    start = parse_time(clock_in)
    end = parse_time(clock_out)
    if start is None or end is None:
        return HoursBreakdown()

    worked_minutes = (end - start) - lunch_break_minutes(lunch_start, lunch_end)
    worked_minutes = apply_overage_tolerance(worked_minutes)

    total_hours = max(0, worked_minutes) / 60.0
    normal_hours = min(total_hours, MAX_NORMAL_HOURS)
    overtime_hours = max(0.0, total_hours - MAX_NORMAL_HOURS)

    return HoursBreakdown(
        total_hours=total_hours,
        normal_hours=normal_hours,
        overtime_hours=overtime_hours,
    )


def calculate_pay(
    normal_hours: float,
    overtime_hours: float,
    hourly_rate: float,
    overtime_rate: float,
) -> Dict[str, float]:
    """Return pay amounts for an hours split. No rounding or currency handling."""
    normal_pay = normal_hours * hourly_rate
    overtime_pay = overtime_hours * overtime_rate
    return {
        "normal_pay": normal_pay,
        "overtime_pay": overtime_pay,
        "total_pay": normal_pay + overtime_pay,
    }
