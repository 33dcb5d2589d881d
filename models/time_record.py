from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime


# Defines the Structure of Data for a Punch Call (fix reported by the device)
class PunchRequest(BaseModel):
    latitude: float = PydanticField(ge=-90, le=90)
    longitude: float = PydanticField(ge=-180, le=180)
    accuracy_meters: Optional[float] = PydanticField(default=None, ge=0)


# Enum Of The Four Daily Punches, In The Order They Must Happen
class PunchField(str, Enum):
    CLOCK_IN = "clock_in"
    LUNCH_START = "lunch_start"
    LUNCH_END = "lunch_end"
    CLOCK_OUT = "clock_out"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


PUNCH_ORDER = (
    PunchField.CLOCK_IN,
    PunchField.LUNCH_START,
    PunchField.LUNCH_END,
    PunchField.CLOCK_OUT,
)


class HoursBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_hours: float = 0.0
    normal_hours: float = 0.0
    overtime_hours: float = 0.0


# Defines a Table "time_records": one row per employee-day w/ the four "HH:MM" punches
class DayPunchRecord(SQLModel, table=True):
    __tablename__ = "time_records"

    __table_args__ = (
        # One record per employee per day
        Index("ix_time_records_employee_id_work_date", "employee_id", "work_date", unique=True),
        Index("ix_time_records_work_date", "work_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: str = Field(index=True)
    work_date: date
    clock_in: Optional[str] = Field(default=None, max_length=5)
    lunch_start: Optional[str] = Field(default=None, max_length=5)
    lunch_end: Optional[str] = Field(default=None, max_length=5)
    clock_out: Optional[str] = Field(default=None, max_length=5)
    # Punch field name -> location metadata captured for that punch
    locations: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    # Written by the persistence sink; never read back for calculations
    total_hours: float = Field(default=0.0)
    normal_hours: float = Field(default=0.0)
    overtime_hours: float = Field(default=0.0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_punch(self, punch_field: PunchField) -> Optional[str]:
        return getattr(self, punch_field.value)

    @field_serializer("updated_at")
    def serialize_updated_at(self, dt: datetime) -> str:
        """Ensure updated_at is formatted as UTC with Z suffix"""
        result = format_utc_datetime(dt)
        return result if result is not None else dt.isoformat()
