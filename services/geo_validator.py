import logging
import math
from typing import Iterable, Optional

from models.location import (
    AllowedLocation,
    PositionFix,
    ValidationOutcome,
    ValidationResult,
)
from utils.geofence import calculate_adaptive_radius, calculate_distance

logger = logging.getLogger(__name__)


class GeoValidator:
    """Decides whether a position fix falls inside any allowed geofence.

    Matching is first-match in input order, not nearest-match: the first active
    location whose distance is within its own adaptive radius wins, even if a
    later location is closer.
    """

    @staticmethod
    def validate(
        fix: PositionFix, locations: Iterable[AllowedLocation]
    ) -> ValidationResult:
        point = fix.coordinate
        accuracy = fix.accuracy_meters

        closest: Optional[AllowedLocation] = None
        closest_distance = math.inf
        closest_radius: Optional[float] = None
        checked = 0

        for location in locations:
            if not location.active:
                continue
            checked += 1

            distance = calculate_distance(point, location.coordinate)
            adaptive_radius = calculate_adaptive_radius(
                location.base_radius_meters, accuracy
            )

            if distance < closest_distance:
                closest = location
                closest_distance = distance
                closest_radius = adaptive_radius

            if distance <= adaptive_radius:
                logger.info(
                    f"[GEOFENCE] ✅ Authorized at {location.name} "
                    f"({distance:.1f}m <= {adaptive_radius:.1f}m, accuracy {accuracy:.0f}m)"
                )
                return ValidationResult(
                    authorized=True,
                    outcome=ValidationOutcome.AUTHORIZED,
                    matched_location=location,
                    closest_location=closest,
                    distance_meters=distance,
                    adaptive_radius_meters=adaptive_radius,
                    gps_accuracy_meters=accuracy,
                )

        if checked == 0:
            logger.warning("[GEOFENCE] No active allowed locations configured")
            return ValidationResult(
                authorized=False,
                outcome=ValidationOutcome.NO_LOCATIONS_CONFIGURED,
                gps_accuracy_meters=accuracy,
            )

        result = ValidationResult(
            authorized=False,
            outcome=ValidationOutcome.OUT_OF_RANGE,
            closest_location=closest,
            distance_meters=closest_distance,
            adaptive_radius_meters=closest_radius,
            gps_accuracy_meters=accuracy,
        )
        logger.info(f"[GEOFENCE] ❌ Not authorized: {result.message}")
        return result
