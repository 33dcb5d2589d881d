import math
from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi import status

if TYPE_CHECKING:
    from models.location import ValidationResult


class PunchError(Exception):
    """Base class for every recoverable punch-flow failure.

    Each error carries a stable ``code`` for clients, a user-facing message and
    the HTTP status the API layer should answer with.
    """

    code = "punch_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Could not register the punch."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


# --- Configuration ---


class NoLocationsConfigured(PunchError):
    code = "no_locations_configured"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = (
        "No allowed locations are configured. Contact an administrator."
    )


# --- Sensor layer (retried by the acquirer) ---


class SensorError(PunchError):
    code = "sensor_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Could not read the device location."


class PermissionDenied(SensorError):
    code = "permission_denied"
    default_message = (
        "Location permission denied. Enable location access in the device settings."
    )


class PositionUnavailable(SensorError):
    code = "position_unavailable"
    default_message = (
        "Location unavailable. Check that GPS is on and the signal is good."
    )


class PositionTimeout(SensorError):
    code = "timeout"
    default_message = (
        "Timed out waiting for a location. The GPS signal is weak, please try again."
    )


# --- Workflow / business rules (never retried) ---


class LocationUnavailable(PunchError):
    code = "location_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, cause: SensorError):
        self.cause = cause
        super().__init__(cause.message)

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["sensor_error"] = self.cause.code
        return detail


class LocationNotAuthorized(PunchError):
    code = "location_not_authorized"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__(result.message)

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        closest = self.result.closest_location
        detail.update(
            {
                "closest_location_id": closest.id if closest else None,
                "closest_location_name": closest.name if closest else None,
                "distance_meters": self.result.distance_meters,
                "adaptive_radius_meters": self.result.adaptive_radius_meters,
                "gps_accuracy_meters": self.result.gps_accuracy_meters,
            }
        )
        return detail


class OutsideShiftWindow(PunchError):
    code = "outside_shift_window"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "This punch is not available at the current time."


class AllPunchesComplete(PunchError):
    code = "all_punches_complete"
    status_code = status.HTTP_409_CONFLICT
    default_message = "All punches for today are already registered."


class CooldownActive(PunchError):
    code = "cooldown_active"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, remaining_seconds: float):
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"Please wait {math.ceil(remaining_seconds)}s before registering the next punch."
        )

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["remaining_seconds"] = self.remaining_seconds
        return detail
