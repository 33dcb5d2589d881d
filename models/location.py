from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


# A single reading from the positioning sensor
class PositionFix(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    accuracy_meters: float = PydanticField(ge=0)
    captured_at_epoch_ms: int

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


# Read-only view of a configured location handed to the validator
class AllowedLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    coordinate: Coordinate
    base_radius_meters: float = PydanticField(gt=0)
    active: bool = True
    address: Optional[str] = None


# Location w/ Circular Geofence, as stored in the DB
class LocationSite(SQLModel, table=True):
    __tablename__ = "allowed_locations"

    id: str = Field(primary_key=True, description="Unique location identifier")
    name: str = Field(..., description="Human-friendly location name")
    address: Optional[str] = Field(default=None, description="Street address")
    latitude: float = Field(..., description="Latitude of location center")
    longitude: float = Field(..., description="Longitude of location center")
    radius_meters: float = Field(..., description="Allowed punch radius in meters")
    is_active: bool = Field(default=True, index=True)

    def to_allowed_location(self) -> AllowedLocation:
        return AllowedLocation(
            id=self.id,
            name=self.name,
            address=self.address,
            coordinate=Coordinate(latitude=self.latitude, longitude=self.longitude),
            base_radius_meters=self.radius_meters,
            active=self.is_active,
        )


class ValidationOutcome(str, Enum):
    AUTHORIZED = "authorized"
    OUT_OF_RANGE = "out_of_range"
    NO_LOCATIONS_CONFIGURED = "no_locations_configured"


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    authorized: bool
    outcome: ValidationOutcome
    matched_location: Optional[AllowedLocation] = None
    # Closest active location by raw distance, kept even when nothing matched
    closest_location: Optional[AllowedLocation] = None
    distance_meters: Optional[float] = None
    adaptive_radius_meters: Optional[float] = None
    gps_accuracy_meters: float

    @property
    def message(self) -> str:
        if self.outcome == ValidationOutcome.NO_LOCATIONS_CONFIGURED:
            return "No allowed locations are configured."
        if self.authorized and self.matched_location is not None:
            return f"Location authorized at {self.matched_location.name}."
        if self.closest_location is None or self.distance_meters is None:
            return "No allowed location nearby."
        return (
            f"You are {round(self.distance_meters)}m from {self.closest_location.name}; "
            f"allowed radius is {round(self.adaptive_radius_meters or 0)}m."
        )
