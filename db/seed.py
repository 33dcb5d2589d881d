# Insert Sample Locations And A Sample Shift
import logging

from sqlmodel import Session, SQLModel

from db.session import engine
from models.location import LocationSite
from models.work_shift import WorkShift, WorkShiftSchedule

logger = logging.getLogger(__name__)


def seed_locations(session: Session):
    # Check if locations already exist to avoid duplicates
    existing_hq = session.get(LocationSite, "HQ")
    existing_site = session.get(LocationSite, "SITE-1")

    if not existing_hq:
        hq = LocationSite(
            id="HQ",
            name="Headquarters",
            address="Praça do Comércio, Lisboa",
            latitude=38.7223,
            longitude=-9.1393,
            radius_meters=50.0,  # 50 m radius
        )
        session.add(hq)
        logger.info("Added HQ location")
    else:
        logger.info("HQ location already exists")

    if not existing_site:
        site = LocationSite(
            id="SITE-1",
            name="Construction Site 1",
            latitude=38.7369,
            longitude=-9.1427,
            radius_meters=150.0,  # Larger radius for open sites
        )
        session.add(site)
        logger.info("Added SITE-1 location")
    else:
        logger.info("SITE-1 location already exists")


def seed_shifts(session: Session):
    if session.get(WorkShift, 1):
        logger.info("Default shift already exists")
        return

    shift = WorkShift(id=1, name="Office 09-18", early_tolerance_minutes=15)
    session.add(shift)
    session.flush()

    # Monday to Friday
    for day in range(5):
        session.add(
            WorkShiftSchedule(
                shift_id=shift.id,
                day_of_week=day,
                start_time="09:00",
                break_start_time="12:00",
                break_end_time="13:00",
                end_time="18:00",
            )
        )
    logger.info("Added default shift")


def seed():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        seed_locations(session)
        seed_shifts(session)
        session.commit()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
