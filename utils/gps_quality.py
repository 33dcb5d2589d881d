from typing import NamedTuple

# Readings that come back without an accuracy are treated as this bad
UNKNOWN_ACCURACY_METERS = 999.0


class GPSQuality(NamedTuple):
    label: str
    acceptable: bool
    confidence: float
    message: str


# (upper bound in meters, quality) - checked in order
_QUALITY_BANDS = (
    (10, GPSQuality("Excellent", True, 1.0, "High precision GPS fix")),
    (30, GPSQuality("Very good", True, 0.9, "Good precision GPS fix")),
    (50, GPSQuality("Good", True, 0.8, "Acceptable precision GPS fix")),
    (100, GPSQuality("Acceptable", True, 0.7, "Medium precision - adaptive radius will be used")),
    (200, GPSQuality("Low", True, 0.6, "Low precision - using enlarged radius")),
)

_VERY_LOW = GPSQuality(
    "Very low", False, 0.4, "GPS fix too imprecise - please try again"
)


def assess_gps_quality(accuracy_meters: float) -> GPSQuality:
    """Map a reported accuracy (meters, lower is better) to its quality band."""
    for upper_bound, quality in _QUALITY_BANDS:
        if accuracy_meters <= upper_bound:
            return quality
    return _VERY_LOW
