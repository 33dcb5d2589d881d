import time
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from core.deps import get_location_source
from db.session import get_session
from models.location import LocationSite, PositionFix, ValidationOutcome
from models.time_record import PunchRequest
from services.geo_validator import GeoValidator
from services.record_store import CachedLocationSource
from utils.gps_quality import UNKNOWN_ACCURACY_METERS, assess_gps_quality

router = APIRouter()

# --- Pydantic Models for Response ---


class LocationGeofenceResponse(BaseModel):
    location_id: str
    name: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    radius_meters: float


class LocationCheckResponse(BaseModel):
    authorized: bool
    outcome: ValidationOutcome
    message: str
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    distance_meters: Optional[float] = None
    adaptive_radius_meters: Optional[float] = None
    gps_accuracy_meters: float
    gps_quality: str
    gps_acceptable: bool


# --- API Endpoints ---


@router.get("", response_model=List[LocationGeofenceResponse])
def list_locations(
    location_source: Annotated[CachedLocationSource, Depends(get_location_source)],
):
    """
    List the active locations employees may punch from.
    """
    return [
        LocationGeofenceResponse(
            location_id=location.id,
            name=location.name,
            address=location.address,
            latitude=location.coordinate.latitude,
            longitude=location.coordinate.longitude,
            radius_meters=location.base_radius_meters,
        )
        for location in location_source()
    ]


@router.get("/{location_id}/geofence", response_model=LocationGeofenceResponse)
def get_location_geofence(
    location_id: str,
    session: Annotated[Session, Depends(get_session)],
):
    """
    Retrieve the geofence information (latitude, longitude, radius) for a specific location.
    """
    site = session.get(LocationSite, location_id)

    if not site:
        raise HTTPException(status_code=404, detail=f"Location with ID {location_id} not found.")

    return LocationGeofenceResponse(
        location_id=site.id,
        name=site.name,
        address=site.address,
        latitude=site.latitude,
        longitude=site.longitude,
        radius_meters=site.radius_meters,
    )


@router.post("/check", response_model=LocationCheckResponse)
def check_location(
    data: PunchRequest,
    location_source: Annotated[CachedLocationSource, Depends(get_location_source)],
):
    """
    Dry-run the geofence for a reported fix. Nothing is punched and no cooldown starts.
    """
    accuracy = data.accuracy_meters
    if accuracy is None:
        accuracy = UNKNOWN_ACCURACY_METERS

    fix = PositionFix(
        latitude=data.latitude,
        longitude=data.longitude,
        accuracy_meters=accuracy,
        captured_at_epoch_ms=int(time.time() * 1000),
    )
    result = GeoValidator.validate(fix, location_source())
    quality = assess_gps_quality(accuracy)
    location = result.matched_location or result.closest_location

    return LocationCheckResponse(
        authorized=result.authorized,
        outcome=result.outcome,
        message=result.message,
        location_id=location.id if location else None,
        location_name=location.name if location else None,
        distance_meters=result.distance_meters,
        adaptive_radius_meters=result.adaptive_radius_meters,
        gps_accuracy_meters=result.gps_accuracy_meters,
        gps_quality=quality.label,
        gps_acceptable=quality.acceptable,
    )
