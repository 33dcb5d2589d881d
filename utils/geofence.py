# app/utils/geofence.py

from math import atan2, cos, radians, sin, sqrt

from models.location import Coordinate

EARTH_RADIUS_METERS = 6371000.0

# Hard ceiling so a low-quality fix can never authorize a distant claim
MAX_ADAPTIVE_RADIUS_METERS = 500.0


def haversine_dist(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    R = EARTH_RADIUS_METERS
    φ1, φ2 = radians(lat1), radians(lat2)
    Δφ = radians(lat2 - lat1)
    Δλ = radians(lng2 - lng1)

    a = sin(Δφ/2)**2 + cos(φ1) * cos(φ2) * sin(Δλ/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return R * c


def calculate_distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two coordinates."""
    return haversine_dist(a.latitude, a.longitude, b.latitude, b.longitude)


def calculate_adaptive_radius(base_radius: float, gps_accuracy: float) -> float:
    """Grow the geofence radius with the reported GPS uncertainty.

    | accuracy (m) | radius                           |
    |--------------|----------------------------------|
    | <= 50        | base_radius                      |
    | <= 100       | base_radius + accuracy           |
    | <= 200       | base_radius + accuracy * 1.5     |
    | > 200        | min(500, base_radius + acc * 2)  |
    """
    if gps_accuracy <= 50:
        return base_radius
    if gps_accuracy <= 100:
        return base_radius + gps_accuracy
    if gps_accuracy <= 200:
        return base_radius + gps_accuracy * 1.5
    return min(MAX_ADAPTIVE_RADIUS_METERS, base_radius + gps_accuracy * 2)


def is_within_radius(
    lat: float,
    lng: float,
    center_lat: float,
    center_lng: float,
    radius_m: float
) -> bool:

    return haversine_dist(lat, lng, center_lat, center_lng) <= radius_m
