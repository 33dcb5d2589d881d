from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_serializer
from sqlmodel import Session

from core.deps import (
    get_current_employee,
    get_location_source,
    get_punch_context,
    get_shift_guard,
)
from core.errors import PunchError
from db.session import get_session
from models.time_record import DayPunchRecord, HoursBreakdown, PunchField, PunchRequest
from services.location_acquirer import LocationAcquirer, ReportedPositionSensor
from services.punch_service import (
    PunchContext,
    PunchService,
    calculate_record_hours,
    next_action,
)
from services.record_store import CachedLocationSource, SessionRecordStore
from services.shift_guard import ShiftGuard
from utils.datetime_helpers import format_remaining_time, format_utc_datetime
from utils.timezone_helpers import from_utc_to_local, get_default_timezone

# --- Pydantic Models for Responses ---


class DayRecordResponse(BaseModel):
    employee_id: str
    work_date: date
    clock_in: Optional[str] = None
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    clock_out: Optional[str] = None
    locations: Dict[str, Any] = {}

    @classmethod
    def from_record(cls, record: DayPunchRecord) -> "DayRecordResponse":
        return cls(
            employee_id=record.employee_id,
            work_date=record.work_date,
            clock_in=record.clock_in,
            lunch_start=record.lunch_start,
            lunch_end=record.lunch_end,
            clock_out=record.clock_out,
            locations=record.locations or {},
        )


class PunchResponse(BaseModel):
    action: PunchField
    punched_at: datetime
    location_id: str
    location_name: str
    distance_meters: float
    adaptive_radius_meters: float
    gps_accuracy_meters: float
    location_changed: bool
    record: DayRecordResponse
    hours: HoursBreakdown
    next_action: Optional[PunchField] = None

    @field_serializer("punched_at")
    def serialize_punched_at(self, dt: datetime) -> str:
        """Ensure punched_at is formatted as UTC with Z suffix"""
        result = format_utc_datetime(dt)
        return result if result is not None else dt.isoformat()


class TodayResponse(BaseModel):
    record: Optional[DayRecordResponse] = None
    hours: HoursBreakdown
    next_action: Optional[PunchField] = None
    cooldown_remaining_seconds: float
    cooldown_remaining: str


# Defines API Endpoints
router = APIRouter()


def build_punch_service(
    data: PunchRequest,
    session: Session,
    context: PunchContext,
    location_source: CachedLocationSource,
    shift_guard: ShiftGuard,
) -> PunchService:
    # The device already did its own GPS retries; replay its single reading
    acquirer = LocationAcquirer(ReportedPositionSensor(
        latitude=data.latitude,
        longitude=data.longitude,
        accuracy_meters=data.accuracy_meters,
    ))
    return PunchService(
        acquirer=acquirer,
        location_source=location_source,
        shift_oracle=shift_guard,
        sink=SessionRecordStore(session),
        context=context,
        max_retries=0,
    )


# Punch Endpoint (registers whichever of the four punches is next)
@router.post("/punch", response_model=PunchResponse)
async def punch(
    data: PunchRequest,
    session: Annotated[Session, Depends(get_session)],
    employee_id: Annotated[str, Depends(get_current_employee)],
    context: Annotated[PunchContext, Depends(get_punch_context)],
    location_source: Annotated[CachedLocationSource, Depends(get_location_source)],
    shift_guard: Annotated[ShiftGuard, Depends(get_shift_guard)],
):
    service = build_punch_service(data, session, context, location_source, shift_guard)
    store = SessionRecordStore(session)
    record = store.get_day_record(employee_id, service.local_now().date())

    try:
        outcome = await service.register_punch(employee_id, record)
    except PunchError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    validation = outcome.validation
    return PunchResponse(
        action=outcome.action,
        punched_at=outcome.punched_at,
        location_id=validation.matched_location.id,
        location_name=validation.matched_location.name,
        distance_meters=validation.distance_meters,
        adaptive_radius_meters=validation.adaptive_radius_meters,
        gps_accuracy_meters=validation.gps_accuracy_meters,
        location_changed=outcome.location_changed,
        record=DayRecordResponse.from_record(outcome.record),
        hours=outcome.breakdown,
        next_action=next_action(outcome.record),
    )


# Get Today's Record, Recomputed Hours And What Comes Next
@router.get("/today", response_model=TodayResponse)
def get_today(
    session: Annotated[Session, Depends(get_session)],
    employee_id: Annotated[str, Depends(get_current_employee)],
    context: Annotated[PunchContext, Depends(get_punch_context)],
):
    now = datetime.now(timezone.utc)
    today = from_utc_to_local(now, get_default_timezone()).date()

    record = SessionRecordStore(session).get_day_record(employee_id, today)
    remaining = context.cooldown_remaining(employee_id, now)

    return TodayResponse(
        record=DayRecordResponse.from_record(record) if record else None,
        hours=calculate_record_hours(record) if record else HoursBreakdown(),
        next_action=next_action(record),
        cooldown_remaining_seconds=remaining,
        cooldown_remaining=format_remaining_time(remaining),
    )
