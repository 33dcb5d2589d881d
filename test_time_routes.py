#!/usr/bin/env python3
"""
API tests for the punch and location endpoints against an in-memory database.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from core.cache import TTLCache
from core.deps import get_shift_guard
from db.session import get_session
from main import app
from models.location import LocationSite
from models.time_record import DayPunchRecord
from services.punch_service import PunchContext
from services.shift_guard import ShiftWindowCheck

HEADERS = {"X-Employee-Id": "emp-1"}
AT_HQ = {"latitude": 38.7223, "longitude": -9.1393, "accuracy_meters": 8}
FAR_AWAY = {"latitude": 38.7500, "longitude": -9.1393, "accuracy_meters": 8}


class ClosedShiftOracle:
    def check(self, employee_id, action, local_now):
        return ShiftWindowCheck(False, "Outside the permitted punch windows")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)

    def get_test_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_test_session
    app.state.punch_context = PunchContext()
    app.state.location_cache = TTLCache(1800)
    yield engine
    app.dependency_overrides.clear()


@pytest.fixture
def client(engine):
    return TestClient(app)


@pytest.fixture
def hq(engine):
    with Session(engine) as session:
        session.add(
            LocationSite(
                id="HQ",
                name="Headquarters",
                address="Praça do Comércio, Lisboa",
                latitude=38.7223,
                longitude=-9.1393,
                radius_meters=50,
            )
        )
        session.add(
            LocationSite(
                id="OLD", name="Closed office", latitude=0, longitude=0, radius_meters=50, is_active=False
            )
        )
        session.commit()


def test_punch_requires_employee_header(client, hq):
    response = client.post("/time/punch", json=AT_HQ)
    assert response.status_code == 401


def test_punch_rejects_invalid_coordinates(client, hq):
    response = client.post("/time/punch", json={"latitude": 95, "longitude": 0}, headers=HEADERS)
    assert response.status_code == 422


def test_punch_registers_clock_in(client, engine, hq):
    response = client.post("/time/punch", json=AT_HQ, headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "clock_in"
    assert data["location_id"] == "HQ"
    assert data["location_name"] == "Headquarters"
    assert data["adaptive_radius_meters"] == 50
    assert data["next_action"] == "lunch_start"
    assert data["punched_at"].endswith("Z")
    assert data["record"]["clock_in"] is not None
    assert data["record"]["locations"]["clock_in"]["location_id"] == "HQ"

    with Session(engine) as session:
        records = session.exec(select(DayPunchRecord)).all()
    assert len(records) == 1
    assert records[0].employee_id == "emp-1"
    assert records[0].clock_in == data["record"]["clock_in"]


def test_second_punch_hits_cooldown(client, hq):
    assert client.post("/time/punch", json=AT_HQ, headers=HEADERS).status_code == 200

    response = client.post("/time/punch", json=AT_HQ, headers=HEADERS)

    assert response.status_code == 429
    detail = response.json()["detail"]
    assert detail["code"] == "cooldown_active"
    assert 0 < detail["remaining_seconds"] <= 300


def test_punch_outside_geofence_is_forbidden(client, hq):
    response = client.post("/time/punch", json=FAR_AWAY, headers=HEADERS)

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "location_not_authorized"
    assert detail["closest_location_id"] == "HQ"
    assert detail["distance_meters"] > 3000

    # A rejected punch does not start the cooldown
    assert client.post("/time/punch", json=AT_HQ, headers=HEADERS).status_code == 200


def test_punch_without_locations_is_a_server_error(client):
    response = client.post("/time/punch", json=AT_HQ, headers=HEADERS)

    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "no_locations_configured"


def test_punch_outside_shift_window(client, hq):
    app.dependency_overrides[get_shift_guard] = lambda: ClosedShiftOracle()

    response = client.post("/time/punch", json=AT_HQ, headers=HEADERS)

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "outside_shift_window"
    assert detail["message"] == "Outside the permitted punch windows"


def test_today_before_any_punch(client, hq):
    response = client.get("/time/today", headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["record"] is None
    assert data["next_action"] == "clock_in"
    assert data["hours"] == {"total_hours": 0, "normal_hours": 0, "overtime_hours": 0}
    assert data["cooldown_remaining"] == "00:00"


def test_today_after_clock_in(client, hq):
    client.post("/time/punch", json=AT_HQ, headers=HEADERS)

    data = client.get("/time/today", headers=HEADERS).json()

    assert data["record"]["clock_in"] is not None
    assert data["next_action"] == "lunch_start"
    assert data["cooldown_remaining_seconds"] > 0
    assert data["cooldown_remaining"] in ("05:00", "04:59")


def test_list_locations_returns_active_only(client, hq):
    response = client.get("/locations")

    assert response.status_code == 200
    assert [item["location_id"] for item in response.json()] == ["HQ"]


def test_locations_are_cached(client, engine, hq):
    client.get("/locations")

    with Session(engine) as session:
        session.add(LocationSite(id="NEW", name="New", latitude=1, longitude=1, radius_meters=30))
        session.commit()

    assert len(client.get("/locations").json()) == 1

    app.state.location_cache.clear()
    assert len(client.get("/locations").json()) == 2


def test_location_geofence(client, hq):
    response = client.get("/locations/HQ/geofence")

    assert response.status_code == 200
    assert response.json() == {
        "location_id": "HQ",
        "name": "Headquarters",
        "address": "Praça do Comércio, Lisboa",
        "latitude": 38.7223,
        "longitude": -9.1393,
        "radius_meters": 50,
    }

    assert client.get("/locations/NOPE/geofence").status_code == 404


def test_check_location_is_a_dry_run(client, hq):
    response = client.post("/locations/check", json=AT_HQ)

    assert response.status_code == 200
    data = response.json()
    assert data["authorized"] is True
    assert data["outcome"] == "authorized"
    assert data["location_id"] == "HQ"
    assert data["gps_quality"] == "Excellent"
    assert data["gps_acceptable"] is True

    # No punch, no cooldown
    assert client.post("/time/punch", json=AT_HQ, headers=HEADERS).status_code == 200


def test_check_location_without_accuracy(client, hq):
    data = client.post("/locations/check", json={"latitude": 38.7223, "longitude": -9.1393}).json()

    assert data["gps_accuracy_meters"] == 999
    assert data["adaptive_radius_meters"] == 500
    assert data["gps_acceptable"] is False


def test_check_location_out_of_range(client, hq):
    data = client.post("/locations/check", json=FAR_AWAY).json()

    assert data["authorized"] is False
    assert data["outcome"] == "out_of_range"
    assert data["location_id"] == "HQ"
    assert "allowed radius is 50m" in data["message"]
