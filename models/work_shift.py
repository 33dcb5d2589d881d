from typing import Optional

from sqlmodel import Field, SQLModel

from core.config import SHIFT_TOLERANCE_MINUTES


class WorkShift(SQLModel, table=True):
    """
    A named working shift. Punches are only accepted inside the windows
    built from its weekly schedule, widened by ``early_tolerance_minutes``.
    """

    __tablename__ = "work_shifts"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    early_tolerance_minutes: int = Field(default=SHIFT_TOLERANCE_MINUTES, ge=0)
    is_active: bool = Field(default=True)


class WorkShiftSchedule(SQLModel, table=True):
    __tablename__ = "work_shift_schedules"

    id: Optional[int] = Field(default=None, primary_key=True)
    shift_id: int = Field(foreign_key="work_shifts.id", index=True)
    # 0 = Monday ... 6 = Sunday (datetime.weekday())
    day_of_week: int = Field(ge=0, le=6)

    # "HH:MM" local times; break times are optional
    start_time: str
    break_start_time: Optional[str] = None
    break_end_time: Optional[str] = None
    end_time: str

    is_active: bool = Field(default=True)


# Which shift an employee works; employees w/o a row punch freely
class ShiftAssignment(SQLModel, table=True):
    __tablename__ = "shift_assignments"

    employee_id: str = Field(primary_key=True)
    shift_id: int = Field(foreign_key="work_shifts.id", index=True)
