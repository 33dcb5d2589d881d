from .location import (
    AllowedLocation,
    Coordinate,
    LocationSite,
    PositionFix,
    ValidationOutcome,
    ValidationResult,
)
from .time_record import DayPunchRecord, HoursBreakdown, PunchField, PunchRequest
from .work_shift import ShiftAssignment, WorkShift, WorkShiftSchedule
