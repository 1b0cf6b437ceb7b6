from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from consult_scheduler.db.session import engine, SessionLocal
from consult_scheduler.errors import NotFoundError, ValidationError
from consult_scheduler.models import Appointment, Base, Reminder
from consult_scheduler.services.appointment_service import (
    cancel_appointment,
    create_appointment,
    list_past_appointments,
    list_upcoming_appointments,
    reschedule_appointment,
    set_appointment_status,
)
from consult_scheduler.services.reminder_service import plan_reminder_times

NOW = datetime(2025, 1, 3, 12, 0, tzinfo=timezone.utc)


def setup_module(module):
    Base.metadata.create_all(bind=engine)


def _clean_db():
    db: Session = SessionLocal()
    try:
        db.query(Reminder).delete()
        db.query(Appointment).delete()
        db.commit()
    finally:
        db.close()


def _book(db: Session, start: datetime, minutes: int = 60, **kwargs) -> Appointment:
    params = dict(consultant_id="c-1", client_id="client-1", now=NOW)
    params.update(kwargs)
    return create_appointment(
        db,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        **params,
    )


def test_plan_reminder_times_skips_past_reminders():
    start = NOW + timedelta(minutes=90)

    planned = plan_reminder_times(start, NOW, [24 * 60, 60, 15])

    assert [minutes for minutes, _ in planned] == [60, 15]
    assert planned[0][1] == start - timedelta(minutes=60)


def test_create_appointment_stores_utc_and_plans_reminders():
    _clean_db()

    db: Session = SessionLocal()
    try:
        start = datetime(2025, 1, 6, 9, 0, tzinfo=timezone(timedelta(hours=-5)))
        appt = _book(db, start, notes="Contract review")

        assert appt.id is not None
        assert appt.status == "scheduled"
        assert appt.is_recurring is False
        assert appt.start_time == datetime(2025, 1, 6, 14, 0)
        assert appt.end_time == datetime(2025, 1, 6, 15, 0)

        reminders = db.query(Reminder).filter_by(appointment_id=appt.id).all()
        # 3 default intervals for consultant and client
        assert len(reminders) == 6
        assert {r.user_id for r in reminders} == {"c-1", "client-1"}
        assert {r.minutes_before for r in reminders} == {24 * 60, 60, 15}
    finally:
        db.close()


def test_create_appointment_rejects_inverted_interval():
    _clean_db()

    db: Session = SessionLocal()
    try:
        with pytest.raises(ValidationError):
            _book(db, NOW + timedelta(days=1), minutes=0)
    finally:
        db.close()


def test_cancel_drops_pending_reminders_and_is_idempotent():
    _clean_db()

    db: Session = SessionLocal()
    try:
        appt = _book(db, NOW + timedelta(days=3))

        cancelled = cancel_appointment(db, appt.id)
        assert cancelled.status == "cancelled"
        assert db.query(Reminder).filter_by(appointment_id=appt.id).count() == 0

        again = cancel_appointment(db, appt.id)
        assert again.status == "cancelled"
    finally:
        db.close()


def test_cancel_missing_appointment_raises_not_found():
    _clean_db()

    db: Session = SessionLocal()
    try:
        with pytest.raises(NotFoundError):
            cancel_appointment(db, 999999)
    finally:
        db.close()


def test_status_changes_only_from_scheduled():
    _clean_db()

    db: Session = SessionLocal()
    try:
        appt = _book(db, NOW + timedelta(days=1))

        done = set_appointment_status(db, appt.id, "completed")
        assert done.status == "completed"

        with pytest.raises(ValidationError):
            set_appointment_status(db, appt.id, "no-show")
        with pytest.raises(ValidationError):
            cancel_appointment(db, appt.id)

        other = _book(db, NOW + timedelta(days=2))
        with pytest.raises(ValidationError):
            set_appointment_status(db, other.id, "scheduled")
    finally:
        db.close()


def test_upcoming_and_past_listings():
    _clean_db()

    db: Session = SessionLocal()
    try:
        later = _book(db, NOW + timedelta(days=5))
        sooner = _book(db, NOW + timedelta(days=1))
        finished = _book(db, NOW - timedelta(days=2), now=None)
        set_appointment_status(db, finished.id, "no-show")
        _book(db, NOW + timedelta(days=1), consultant_id="c-2", client_id="client-9")

        upcoming = list_upcoming_appointments(db, "c-1", "consultant", NOW)
        assert [a.id for a in upcoming] == [sooner.id, later.id]

        past = list_past_appointments(db, "client-1", "client")
        assert [a.id for a in past] == [finished.id]

        with pytest.raises(ValidationError):
            list_past_appointments(db, "client-1", "admin")
    finally:
        db.close()


def test_reschedule_moves_appointment_and_replans_reminders():
    _clean_db()

    db: Session = SessionLocal()
    try:
        appt = _book(db, NOW + timedelta(days=3))
        new_start = NOW + timedelta(minutes=45)

        moved = reschedule_appointment(
            db,
            appt.id,
            start_time=new_start,
            end_time=new_start + timedelta(minutes=30),
            now=NOW,
        )

        assert moved.start_time == datetime(2025, 1, 3, 12, 45)
        reminders = db.query(Reminder).filter_by(appointment_id=appt.id).all()
        assert {r.minutes_before for r in reminders} == {15}
    finally:
        db.close()
