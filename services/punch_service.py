import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from core.config import GPS_MAX_RETRIES, PUNCH_COOLDOWN_MINUTES
from core.errors import (
    AllPunchesComplete,
    CooldownActive,
    LocationNotAuthorized,
    LocationUnavailable,
    NoLocationsConfigured,
    OutsideShiftWindow,
    SensorError,
)
from models.location import AllowedLocation, PositionFix, ValidationResult
from models.time_record import PUNCH_ORDER, DayPunchRecord, HoursBreakdown, PunchField
from services.geo_validator import GeoValidator
from services.location_acquirer import LocationAcquirer
from services.shift_guard import ShiftWindowOracle
from utils.datetime_helpers import format_hhmm, format_utc_datetime
from utils.geofence import is_within_radius
from utils.hours import calculate_working_hours
from utils.timezone_helpers import from_utc_to_local, get_default_timezone

logger = logging.getLogger(__name__)

# Consecutive punches farther apart than this are flagged as a change of site
LOCATION_CHANGE_THRESHOLD_METERS = 200.0


class PunchSink(Protocol):
    def save(self, record: DayPunchRecord, breakdown: HoursBreakdown) -> Any:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PunchContext:
    """Per-employee cooldown state shared by every punch handled by one app.

    Last punch times are plain dict assignments (last write wins). Two devices
    punching for the same employee at the same instant can both pass the check.
    """

    def __init__(self, cooldown: timedelta = timedelta(minutes=PUNCH_COOLDOWN_MINUTES)):
        self.cooldown = cooldown
        self._last_punch_at: Dict[str, datetime] = {}

    def cooldown_remaining(self, employee_id: str, now: datetime) -> float:
        """Seconds until the employee may punch again (0 when not blocked)."""
        last = self._last_punch_at.get(employee_id)
        if last is None:
            return 0.0
        remaining = (last + self.cooldown - now).total_seconds()
        return max(0.0, remaining)

    def mark_punch(self, employee_id: str, punched_at: datetime) -> None:
        self._last_punch_at[employee_id] = punched_at

    def reset(self, employee_id: Optional[str] = None) -> None:
        if employee_id is None:
            self._last_punch_at.clear()
        else:
            self._last_punch_at.pop(employee_id, None)


@dataclass
class PunchOutcome:
    record: DayPunchRecord
    action: PunchField
    punched_at: datetime
    breakdown: HoursBreakdown
    validation: ValidationResult
    location_changed: bool = False


def next_action(record: Optional[DayPunchRecord]) -> Optional[PunchField]:
    """First unset punch of the day, or None once all four are registered."""
    for punch_field in PUNCH_ORDER:
        if record is None or not record.get_punch(punch_field):
            return punch_field
    return None


def calculate_record_hours(record: DayPunchRecord) -> HoursBreakdown:
    """Always recomputed from the four raw punches, never from stored totals."""
    return calculate_working_hours(
        record.clock_in, record.lunch_start, record.lunch_end, record.clock_out
    )


def _previous_punch_location(record: DayPunchRecord, action: PunchField) -> Optional[dict]:
    previous = None
    for punch_field in PUNCH_ORDER:
        if punch_field == action:
            break
        metadata = (record.locations or {}).get(punch_field.value)
        if metadata:
            previous = metadata
    return previous


def detect_location_change(
    record: DayPunchRecord, action: PunchField, fix: PositionFix
) -> bool:
    previous = _previous_punch_location(record, action)
    if not previous:
        return False
    return not is_within_radius(
        fix.latitude,
        fix.longitude,
        previous["latitude"],
        previous["longitude"],
        LOCATION_CHANGE_THRESHOLD_METERS,
    )


class PunchService:
    """Runs one punch: cooldown, shift window, GPS, geofence, stamp, persist.

    Business rejections (cooldown, shift window, geofence) are raised as
    PunchError subclasses and never retried; only GPS acquisition retries.
    """

    def __init__(
        self,
        acquirer: LocationAcquirer,
        location_source: Callable[[], List[AllowedLocation]],
        shift_oracle: ShiftWindowOracle,
        sink: PunchSink,
        context: PunchContext,
        clock: Callable[[], datetime] = _utc_now,
        tz: Optional[str] = None,
        validator: GeoValidator = GeoValidator(),
        max_retries: int = GPS_MAX_RETRIES,
    ):
        self.acquirer = acquirer
        self.location_source = location_source
        self.shift_oracle = shift_oracle
        self.sink = sink
        self.context = context
        self.clock = clock
        self.tz = tz or get_default_timezone()
        self.validator = validator
        self.max_retries = max_retries

    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def local_now(self) -> datetime:
        return from_utc_to_local(self._now(), self.tz)

    def cooldown_remaining(self, employee_id: str) -> float:
        return self.context.cooldown_remaining(employee_id, self._now())

    async def register_punch(
        self, employee_id: str, record: Optional[DayPunchRecord] = None
    ) -> PunchOutcome:
        now = self._now()
        local_now = from_utc_to_local(now, self.tz)

        if record is None:
            record = DayPunchRecord(employee_id=employee_id, work_date=local_now.date())

        # 1) Which punch is next
        action = next_action(record)
        if action is None:
            raise AllPunchesComplete()

        # 2) Cooldown between punches
        remaining = self.context.cooldown_remaining(employee_id, now)
        if remaining > 0:
            logger.info(f"[PUNCH] {employee_id} blocked by cooldown ({remaining:.0f}s left)")
            raise CooldownActive(remaining)

        # 3) Shift window
        shift_check = self.shift_oracle.check(employee_id, action, local_now)
        if not shift_check.allowed:
            raise OutsideShiftWindow(shift_check.message)

        # 4) Allowed locations must exist before we bother the sensor
        locations = self.location_source()
        if not any(location.active for location in locations):
            logger.error("[PUNCH] No active allowed locations configured")
            raise NoLocationsConfigured()

        # 5) GPS fix
        try:
            fix = await self.acquirer.acquire(self.max_retries)
        except SensorError as exc:
            logger.warning(f"[PUNCH] {employee_id} location unavailable: {exc.code}")
            raise LocationUnavailable(exc) from exc

        # 6) Geofence
        validation = self.validator.validate(fix, locations)
        if not validation.authorized:
            raise LocationNotAuthorized(validation)

        # 7) Stamp, attach location metadata, recompute hours, persist
        # Stamped with the reading work_date came from, even if GPS ran past midnight
        punched_at = now
        stamp = format_hhmm(local_now)
        location_changed = detect_location_change(record, action, fix)
        matched = validation.matched_location

        setattr(record, action.value, stamp)
        record.locations = {
            **(record.locations or {}),
            action.value: {
                "latitude": fix.latitude,
                "longitude": fix.longitude,
                "accuracy_meters": fix.accuracy_meters,
                "captured_at": format_utc_datetime(
                    datetime.fromtimestamp(fix.captured_at_epoch_ms / 1000, tz=timezone.utc)
                ),
                "location_id": matched.id,
                "location_name": matched.name,
                "distance_meters": round(validation.distance_meters, 1),
                "adaptive_radius_meters": validation.adaptive_radius_meters,
                "location_changed": location_changed,
            },
        }

        breakdown = calculate_record_hours(record)
        self.sink.save(record, breakdown)

        # 8) Start the cooldown
        self.context.mark_punch(employee_id, punched_at)

        logger.info(
            f"[PUNCH] ✅ {employee_id} {action.value} at {stamp} ({matched.name})"
        )
        return PunchOutcome(
            record=record,
            action=action,
            punched_at=punched_at,
            breakdown=breakdown,
            validation=validation,
            location_changed=location_changed,
        )
