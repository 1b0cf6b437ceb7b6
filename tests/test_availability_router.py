from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from consult_scheduler.main import app
from consult_scheduler.db.session import engine, SessionLocal
from consult_scheduler.models import Appointment, Base, ConsultantAvailability, Reminder
from consult_scheduler.scheduling.clock import get_clock

FIXED_NOW = datetime(2025, 1, 3, 12, 0, tzinfo=timezone.utc)

client = TestClient(app)


def setup_module(module):
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)


def teardown_module(module):
    app.dependency_overrides.pop(get_clock, None)


def _clean_db():
    db: Session = SessionLocal()
    try:
        db.query(Reminder).delete()
        db.query(Appointment).delete()
        db.query(ConsultantAvailability).delete()
        db.commit()
    finally:
        db.close()


AVAILABILITY = {
    "weeklySchedule": {
        "1": {"start": "09:00", "end": "17:00", "breakStart": "12:00", "breakEnd": "13:00"},
    },
    "exceptions": [{"date": "2025-01-13", "available": False}],
    "timezone": "UTC",
    "bufferBetweenAppointments": 30,
    "maxAdvanceBooking": 30,
    "minNoticeBooking": 0,
}


def test_put_and_get_availability():
    _clean_db()

    resp = client.put("/consultants/c-1/availability", json=AVAILABILITY)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["consultantId"] == "c-1"
    assert data["weeklySchedule"]["1"]["breakStart"] == "12:00"

    resp = client.get("/consultants/c-1/availability")
    assert resp.status_code == 200
    assert resp.json() == data


def test_put_invalid_availability_returns_400():
    _clean_db()

    bad = dict(AVAILABILITY, weeklySchedule={"1": {"start": "17:00", "end": "09:00"}})
    resp = client.put("/consultants/c-1/availability", json=bad)
    assert resp.status_code == 400

    resp = client.put("/consultants/c-1/availability", json=dict(AVAILABILITY, timezone="Nowhere/City"))
    assert resp.status_code == 400


def test_get_missing_availability_returns_404():
    _clean_db()

    assert client.get("/consultants/ghost/availability").status_code == 404
    assert client.get("/consultants/ghost/slots", params={"date": "2025-01-06"}).status_code == 404


def test_slots_reflect_breaks_bookings_and_exceptions():
    _clean_db()
    client.put("/consultants/c-1/availability", json=AVAILABILITY)

    resp = client.get("/consultants/c-1/slots", params={"date": "2025-01-06"})
    assert resp.status_code == 200, resp.text
    slots = resp.json()["slots"]
    assert len(slots) == 14
    assert all(s["available"] for s in slots)

    booked = client.post(
        "/appointments",
        json={
            "consultant_id": "c-1",
            "client_id": "client-1",
            "start_time": "2025-01-06T10:00:00Z",
            "end_time": "2025-01-06T10:30:00Z",
        },
    )
    assert booked.status_code == 200, booked.text

    slots = client.get("/consultants/c-1/slots", params={"date": "2025-01-06"}).json()["slots"]
    unavailable = [s["start_time"] for s in slots if not s["available"]]
    assert [u[11:16] for u in unavailable] == ["09:30", "10:00", "10:30"]

    # Closed by exception
    closed = client.get("/consultants/c-1/slots", params={"date": "2025-01-13"}).json()
    assert closed["slots"] == []


def test_slot_length_must_be_positive():
    _clean_db()
    client.put("/consultants/c-1/availability", json=AVAILABILITY)

    resp = client.get("/consultants/c-1/slots", params={"date": "2025-01-06", "slot_length_minutes": 0})
    assert resp.status_code == 422
