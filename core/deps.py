from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlmodel import Session

from core.cache import TTLCache
from db.session import get_session
from services.punch_service import PunchContext
from services.record_store import CachedLocationSource, load_allowed_locations
from services.shift_guard import ShiftGuard

# Standard identification exception
MISSING_EMPLOYEE_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Missing X-Employee-Id header",
)


# Identifies The Employee Punching; Authentication Happens Upstream
async def get_current_employee(
    x_employee_id: Annotated[str | None, Header(alias="X-Employee-Id")] = None,
) -> str:
    employee_id = (x_employee_id or "").strip()
    if not employee_id:
        raise MISSING_EMPLOYEE_EXCEPTION
    return employee_id


# Shared Cooldown State Lives On The App, Not In A Module Global
def get_punch_context(request: Request) -> PunchContext:
    return request.app.state.punch_context


def get_location_cache(request: Request) -> TTLCache:
    return request.app.state.location_cache


def get_location_source(
    session: Annotated[Session, Depends(get_session)],
    cache: Annotated[TTLCache, Depends(get_location_cache)],
) -> CachedLocationSource:
    return CachedLocationSource(lambda: load_allowed_locations(session), cache)


def get_shift_guard(session: Annotated[Session, Depends(get_session)]) -> ShiftGuard:
    return ShiftGuard(session)
