import logging
from datetime import date, datetime, timezone
from typing import Callable, List, Optional

from sqlmodel import Session, select

from core.cache import TTLCache
from core.config import LOCATIONS_CACHE_SECONDS
from models.location import AllowedLocation, LocationSite
from models.time_record import DayPunchRecord, HoursBreakdown

logger = logging.getLogger(__name__)

ALLOWED_LOCATIONS_KEY = "allowed_locations"


def load_allowed_locations(session: Session) -> List[AllowedLocation]:
    """Active configured locations, as read-only value objects."""
    sites = session.exec(
        select(LocationSite)
        .where(LocationSite.is_active == True)  # noqa: E712
        .order_by(LocationSite.id)
    ).all()
    return [site.to_allowed_location() for site in sites]


class CachedLocationSource:
    """Callable location source that keeps the loaded list for a TTL."""

    def __init__(
        self,
        loader: Callable[[], List[AllowedLocation]],
        cache: Optional[TTLCache] = None,
    ):
        self.loader = loader
        self.cache = cache if cache is not None else TTLCache(LOCATIONS_CACHE_SECONDS)

    def __call__(self) -> List[AllowedLocation]:
        return self.cache.get_or_load(ALLOWED_LOCATIONS_KEY, self.loader)

    def invalidate(self) -> None:
        self.cache.invalidate(ALLOWED_LOCATIONS_KEY)


class SessionRecordStore:
    """Persistence sink for day records backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def get_day_record(self, employee_id: str, work_date: date) -> Optional[DayPunchRecord]:
        return self.session.exec(
            select(DayPunchRecord)
            .where(DayPunchRecord.employee_id == employee_id)
            .where(DayPunchRecord.work_date == work_date)
        ).first()

    def save(self, record: DayPunchRecord, breakdown: HoursBreakdown) -> DayPunchRecord:
        record.total_hours = breakdown.total_hours
        record.normal_hours = breakdown.normal_hours
        record.overtime_hours = breakdown.overtime_hours
        record.updated_at = datetime.now(timezone.utc)

        # Appends/Updates The Record; Commits Changes to DB
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)

        logger.info(
            f"[PUNCH] Saved record {record.id} for {record.employee_id} on {record.work_date}"
        )
        return record
