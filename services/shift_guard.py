import logging
from datetime import datetime
from typing import List, NamedTuple, Optional, Protocol

from sqlmodel import Session, select

from core.config import SHIFT_TOLERANCE_MINUTES
from models.time_record import PunchField
from models.work_shift import ShiftAssignment, WorkShift, WorkShiftSchedule
from utils.hours import parse_time

logger = logging.getLogger(__name__)

FREE_MODE_MESSAGE = "Free mode - no schedule restrictions"


class ShiftWindowCheck(NamedTuple):
    allowed: bool
    message: str


class ShiftWindowOracle(Protocol):
    def check(
        self, employee_id: str, action: PunchField, local_now: datetime
    ) -> ShiftWindowCheck:
        ...


def _format_minutes(minutes: int) -> str:
    minutes %= 24 * 60
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _schedule_windows(schedule: WorkShiftSchedule) -> List[tuple]:
    """(punch field, scheduled minute) pairs in punch order, skipping unset times."""
    times = (
        (PunchField.CLOCK_IN, schedule.start_time),
        (PunchField.LUNCH_START, schedule.break_start_time),
        (PunchField.LUNCH_END, schedule.break_end_time),
        (PunchField.CLOCK_OUT, schedule.end_time),
    )
    windows = []
    for punch_field, time_str in times:
        minutes = parse_time(time_str)
        if minutes is not None:
            windows.append((punch_field, minutes))
    return windows


def evaluate_shift_window(
    schedule: Optional[WorkShiftSchedule],
    action: PunchField,
    local_now: datetime,
    tolerance_minutes: int = SHIFT_TOLERANCE_MINUTES,
) -> ShiftWindowCheck:
    """Decide whether ``action`` may be punched at ``local_now``.

    Every scheduled time opens a window of +/- ``tolerance_minutes``. The first
    window (in punch order) containing the current minute decides, and only
    the punch that window belongs to is allowed.
    """
    if schedule is None:
        return ShiftWindowCheck(False, "No schedule configured for today")

    current = local_now.hour * 60 + local_now.minute

    for punch_field, scheduled in _schedule_windows(schedule):
        start = scheduled - tolerance_minutes
        end = scheduled + tolerance_minutes
        if start <= current <= end:
            window = f"{_format_minutes(start)} - {_format_minutes(end)}"
            if punch_field == action:
                return ShiftWindowCheck(True, f"{punch_field.label} window open ({window})")
            return ShiftWindowCheck(
                False,
                f"Only {punch_field.label} can be registered now ({window})",
            )

    return ShiftWindowCheck(False, "Outside the permitted punch windows")


class AlwaysOpenShiftOracle:
    """Oracle for deployments without shift schedules: every punch is allowed."""

    def check(
        self, employee_id: str, action: PunchField, local_now: datetime
    ) -> ShiftWindowCheck:
        return ShiftWindowCheck(True, FREE_MODE_MESSAGE)


class ShiftGuard:
    """Shift-window oracle backed by the work shift tables."""

    def __init__(self, session: Session):
        self.session = session

    def check(
        self, employee_id: str, action: PunchField, local_now: datetime
    ) -> ShiftWindowCheck:
        assignment = self.session.get(ShiftAssignment, employee_id)
        if assignment is None:
            return ShiftWindowCheck(True, FREE_MODE_MESSAGE)

        shift = self.session.get(WorkShift, assignment.shift_id)
        if shift is None or not shift.is_active:
            logger.warning(
                f"[SHIFT] Shift {assignment.shift_id} missing or inactive for {employee_id}; free mode"
            )
            return ShiftWindowCheck(True, FREE_MODE_MESSAGE)

        schedules = self.session.exec(
            select(WorkShiftSchedule)
            .where(WorkShiftSchedule.shift_id == shift.id)
            .where(WorkShiftSchedule.is_active == True)  # noqa: E712
        ).all()
        if not schedules:
            return ShiftWindowCheck(True, FREE_MODE_MESSAGE)

        today = next(
            (s for s in schedules if s.day_of_week == local_now.weekday()), None
        )
        result = evaluate_shift_window(
            today, action, local_now, shift.early_tolerance_minutes
        )
        logger.info(
            f"[SHIFT] {employee_id} {action.value} at {local_now:%H:%M}: "
            f"{'allowed' if result.allowed else 'blocked'} ({result.message})"
        )
        return result
