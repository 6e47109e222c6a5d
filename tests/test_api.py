"""
HTTP-level tests for the scheduling endpoints.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from clinic_scheduler.application.use_cases.scheduling_session import SchedulingSessionUseCase
from clinic_scheduler.infrastructure.clinic_api.mock_clinic_api import MockClinicApi
from clinic_scheduler.infrastructure.store.memory_store import MemorySchedulingSessionStore
from clinic_scheduler.main import app
from clinic_scheduler.wiring.dependencies import get_scheduling_use_case

BASE = "/api/v1/scheduling/sessions/s1"


@pytest.fixture
def client():
    use_case = SchedulingSessionUseCase(MockClinicApi(), MemorySchedulingSessionStore(), strict=True)
    app.dependency_overrides[get_scheduling_use_case] = lambda: use_case
    yield TestClient(app)
    app.dependency_overrides.clear()


def _walk(client: TestClient) -> dict:
    client.post(f"{BASE}/patient", json={"patient_history_id": 55})
    client.post(f"{BASE}/appointment-type", json={"appointment_type_id": 1})
    client.post(f"{BASE}/speciality", json={"speciality_id": 1})
    client.post(f"{BASE}/doctor", json={"doctor_id": 1})
    client.post(f"{BASE}/date", json={"date": "2024-05-06"})
    client.post(f"{BASE}/time-slot", json={"start_time": "09:00"})
    return client.post(f"{BASE}/office", json={"office_id": 1}).json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_fresh_session(client):
    body = client.get(BASE).json()
    assert body["complete"] is False
    assert body["duration"] == {"base_duration": 0, "buffer_minutes": 15, "rounding_minutes": 0, "duration": 15}


def test_walk_and_book(client):
    body = _walk(client)
    assert body["complete"] is True
    assert body["time_slot"] == {"start_time": "09:00", "end_time": "09:45", "available": True}
    assert body["duration"]["duration"] == 45

    response = client.post(f"{BASE}/booking")
    assert response.status_code == 200
    booked = response.json()
    assert booked["confirmation"]["doctor_id"] == 1
    assert booked["session"]["complete"] is False
    assert booked["session"]["last_confirmation"]["appointment_id"] == booked["confirmation"]["appointment_id"]


def test_date_change_clears_downstream(client):
    _walk(client)
    body = client.post(f"{BASE}/date", json={"date": "2024-05-13"}).json()
    assert body["time_slot"] is None
    assert body["office_id"] is None
    assert body["doctor"]["id"] == 1


def test_no_slots_reason_reported(client):
    client.post(f"{BASE}/speciality", json={"speciality_id": 1})
    client.post(f"{BASE}/doctor", json={"doctor_id": 1})
    body = client.post(f"{BASE}/date", json={"date": "2024-05-07"}).json()
    assert body["time_slots"] == []
    assert body["no_slots_reason"] == "no_applicable_window"


def test_tasks_endpoints(client):
    body = client.post(f"{BASE}/tasks", json={"description": "Electrocardiograma", "estimated_time": 20}).json()
    assert body["duration"]["duration"] == 45

    body = client.put(f"{BASE}/tasks/0", json={"description": "Electrocardiograma", "estimated_time": 30}).json()
    assert body["custom_tasks"][0]["estimated_time"] == 30
    assert body["duration"]["duration"] == 45

    body = client.delete(f"{BASE}/tasks/0").json()
    assert body["custom_tasks"] == []

    assert client.delete(f"{BASE}/tasks/0").status_code == 400


def test_out_of_order_is_bad_request(client):
    response = client.post(f"{BASE}/office", json={"office_id": 1})
    assert response.status_code == 400
    assert client.post(f"{BASE}/booking").status_code == 400


def test_fetch_failure_is_bad_gateway(client):
    response = client.post(f"{BASE}/appointment-type", json={"appointment_type_id": 99})
    assert response.status_code == 502


def test_conflict_is_reported(client):
    _walk(client)
    client.post("/api/v1/scheduling/sessions/s2/patient", json={"patient_history_id": 77})
    client.post("/api/v1/scheduling/sessions/s2/appointment-type", json={"appointment_type_id": 1})
    client.post("/api/v1/scheduling/sessions/s2/speciality", json={"speciality_id": 1})
    client.post("/api/v1/scheduling/sessions/s2/doctor", json={"doctor_id": 1})
    client.post("/api/v1/scheduling/sessions/s2/date", json={"date": "2024-05-06"})
    client.post("/api/v1/scheduling/sessions/s2/time-slot", json={"start_time": "09:00"})
    client.post("/api/v1/scheduling/sessions/s2/office", json={"office_id": 2})
    assert client.post("/api/v1/scheduling/sessions/s2/booking").status_code == 200

    assert client.post(f"{BASE}/booking").status_code == 409
    body = client.get(BASE).json()
    assert body["time_slot"] is None
    assert body["time_slots"][0]["available"] is False


def test_cancel(client):
    _walk(client)
    body = client.delete(BASE).json()
    assert body["doctor"] is None
    assert body["patient_history_id"] is None
