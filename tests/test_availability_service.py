import pytest
from sqlalchemy.orm import Session

from consult_scheduler.db.session import engine, SessionLocal
from consult_scheduler.errors import NotFoundError, ValidationError
from consult_scheduler.models import Base, ConsultantAvailability
from consult_scheduler.services.availability_service import (
    get_availability_profile,
    upsert_availability_profile,
)


def setup_module(module):
    Base.metadata.create_all(bind=engine)


def _clean_db():
    db: Session = SessionLocal()
    try:
        db.query(ConsultantAvailability).delete()
        db.commit()
    finally:
        db.close()


RECORD = {
    "weeklySchedule": {
        "1": {"start": "09:00", "end": "17:00", "breakStart": "12:00", "breakEnd": "13:00"},
    },
    "exceptions": [{"date": "2025-01-13", "available": False}],
    "timezone": "Europe/London",
    "bufferBetweenAppointments": 15,
    "maxAdvanceBooking": 60,
    "minNoticeBooking": 12,
}


def test_upsert_then_get_returns_same_profile():
    _clean_db()

    db: Session = SessionLocal()
    try:
        saved = upsert_availability_profile(db, "c-100", RECORD)
        loaded = get_availability_profile(db, "c-100")

        assert loaded == saved
        assert loaded.timezone == "Europe/London"
        assert loaded.buffer_between_appointments == 15
        assert 1 in loaded.weekly_schedule
    finally:
        db.close()


def test_upsert_replaces_existing_profile():
    _clean_db()

    db: Session = SessionLocal()
    try:
        upsert_availability_profile(db, "c-100", RECORD)
        upsert_availability_profile(
            db,
            "c-100",
            {"weeklySchedule": {"2": {"start": "10:00", "end": "12:00"}}, "timezone": "UTC"},
        )

        assert db.query(ConsultantAvailability).filter_by(consultant_id="c-100").count() == 1
        profile = get_availability_profile(db, "c-100")
        assert set(profile.weekly_schedule) == {2}
        assert profile.exceptions == {}
    finally:
        db.close()


def test_invalid_record_leaves_stored_profile_untouched():
    _clean_db()

    db: Session = SessionLocal()
    try:
        upsert_availability_profile(db, "c-100", RECORD)

        bad = dict(RECORD, weeklySchedule={"1": {"start": "17:00", "end": "09:00"}})
        with pytest.raises(ValidationError):
            upsert_availability_profile(db, "c-100", bad)

        profile = get_availability_profile(db, "c-100")
        assert profile.weekly_schedule[1].start.hour == 9
    finally:
        db.close()


def test_missing_profile_raises_not_found():
    _clean_db()

    db: Session = SessionLocal()
    try:
        with pytest.raises(NotFoundError):
            get_availability_profile(db, "nobody")
    finally:
        db.close()
