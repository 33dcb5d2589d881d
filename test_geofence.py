#!/usr/bin/env python3
"""
Tests for the geofence math and the GeoValidator first-match rules.
"""
import pytest

from models.location import (
    AllowedLocation,
    Coordinate,
    PositionFix,
    ValidationOutcome,
)
from services.geo_validator import GeoValidator
from utils.geofence import (
    MAX_ADAPTIVE_RADIUS_METERS,
    calculate_adaptive_radius,
    calculate_distance,
    is_within_radius,
)

LISBON = Coordinate(latitude=38.7223, longitude=-9.1393)


def make_location(id, lat, lng, radius, active=True):
    return AllowedLocation(
        id=id,
        name=f"Location {id}",
        coordinate=Coordinate(latitude=lat, longitude=lng),
        base_radius_meters=radius,
        active=active,
    )


def make_fix(lat, lng, accuracy):
    return PositionFix(
        latitude=lat, longitude=lng, accuracy_meters=accuracy, captured_at_epoch_ms=0
    )


@pytest.mark.parametrize(
    "point",
    [LISBON, Coordinate(latitude=0, longitude=0), Coordinate(latitude=-33.9, longitude=151.2)],
)
def test_distance_to_self_is_zero(point):
    assert calculate_distance(point, point) == 0


def test_distance_matches_known_value():
    # 0.001 degrees of longitude on the equator is ~111.19 m
    a = Coordinate(latitude=0, longitude=0)
    b = Coordinate(latitude=0, longitude=0.001)
    assert calculate_distance(a, b) == pytest.approx(111.19, abs=0.01)
    assert calculate_distance(a, b) == pytest.approx(calculate_distance(b, a))


@pytest.mark.parametrize("accuracy", [0, 5, 49.9, 50])
def test_adaptive_radius_trusts_good_accuracy(accuracy):
    assert calculate_adaptive_radius(75, accuracy) == 75


def test_adaptive_radius_bands():
    assert calculate_adaptive_radius(50, 80) == 130
    assert calculate_adaptive_radius(50, 100) == 150
    assert calculate_adaptive_radius(50, 150) == 275
    assert calculate_adaptive_radius(50, 200) == 350
    assert calculate_adaptive_radius(50, 220) == 490


@pytest.mark.parametrize("accuracy", [201, 250, 1000, 10_000])
def test_adaptive_radius_is_capped(accuracy):
    assert calculate_adaptive_radius(100, accuracy) <= MAX_ADAPTIVE_RADIUS_METERS


def test_is_within_radius():
    assert is_within_radius(0, 0.0004, 0, 0, 50)
    assert not is_within_radius(0, 0.0004, 0, 0, 40)


def test_low_accuracy_uses_emergency_radius():
    location = make_location("HQ", LISBON.latitude, LISBON.longitude, 50)
    result = GeoValidator.validate(make_fix(LISBON.latitude, LISBON.longitude, 250), [location])

    assert result.authorized
    assert result.outcome == ValidationOutcome.AUTHORIZED
    assert result.matched_location == location
    assert result.adaptive_radius_meters == 500
    assert result.distance_meters == pytest.approx(0)
    assert result.gps_accuracy_meters == 250


def test_first_location_within_its_radius_wins_over_closer_one():
    # A is closer (~44m) but its 10m radius rejects; B (~56m) accepts
    closer_but_tight = make_location("A", 0, 0, 10)
    farther_but_wide = make_location("B", 0, 0.0009, 200)
    fix = make_fix(0, 0.0004, 5)

    result = GeoValidator.validate(fix, [closer_but_tight, farther_but_wide])

    assert result.authorized
    assert result.matched_location.id == "B"
    assert result.distance_meters <= result.adaptive_radius_meters


def test_match_follows_input_order_not_distance():
    far = make_location("FAR", 0, 0.0009, 200)
    near = make_location("NEAR", 0, 0.0001, 200)

    result = GeoValidator.validate(make_fix(0, 0, 5), [far, near])

    assert result.matched_location.id == "FAR"


def test_rejection_reports_closest_location_diagnostics():
    a = make_location("A", 0, 0.01, 50)
    b = make_location("B", 0, 0.002, 50)

    result = GeoValidator.validate(make_fix(0, 0, 10), [a, b])

    assert not result.authorized
    assert result.outcome == ValidationOutcome.OUT_OF_RANGE
    assert result.matched_location is None
    assert result.closest_location.id == "B"
    assert result.distance_meters == pytest.approx(222.39, abs=0.05)
    assert result.adaptive_radius_meters == 50
    assert "222m from Location B" in result.message
    assert "allowed radius is 50m" in result.message


def test_inactive_locations_are_ignored():
    inactive = make_location("OLD", 0, 0, 500, active=False)
    active = make_location("NEW", 1, 1, 50)

    result = GeoValidator.validate(make_fix(0, 0, 5), [inactive, active])

    assert not result.authorized
    assert result.closest_location.id == "NEW"


@pytest.mark.parametrize("locations", [[], [make_location("OLD", 0, 0, 500, active=False)]])
def test_no_active_locations(locations):
    result = GeoValidator.validate(make_fix(0, 0, 5), locations)

    assert not result.authorized
    assert result.outcome == ValidationOutcome.NO_LOCATIONS_CONFIGURED
    assert result.matched_location is None
    assert result.closest_location is None
    assert result.distance_meters is None


def test_zero_accuracy_does_not_raise():
    location = make_location("HQ", 0, 0, 30)
    result = GeoValidator.validate(make_fix(0, 0.0001, 0), [location])
    assert result.authorized
