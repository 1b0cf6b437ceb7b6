# consult_scheduler/services/appointment_service.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from consult_scheduler.errors import NotFoundError, ValidationError
from consult_scheduler.models.appointment import Appointment
from consult_scheduler.scheduling.clock import to_utc_naive
from consult_scheduler.scheduling.status import AppointmentStatus
from consult_scheduler.services.reminder_service import (
    drop_pending_reminders,
    schedule_reminders,
)

logger = logging.getLogger(__name__)

ROLES = ("consultant", "client")

PAST_STATUSES = (
    AppointmentStatus.COMPLETED.value,
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.NO_SHOW.value,
)


def _user_column(role: str):
    if role not in ROLES:
        raise ValidationError(f"role must be one of {ROLES}")
    return Appointment.consultant_id if role == "consultant" else Appointment.client_id


def create_appointment(
    db: Session,
    *,
    consultant_id: str,
    client_id: str,
    start_time: datetime,
    end_time: datetime,
    appointment_type_id: Optional[int] = None,
    notes: Optional[str] = None,
    recurring_pattern_id: Optional[int] = None,
    now: Optional[datetime] = None,
    commit: bool = True,
) -> Appointment:
    """
    Persist a scheduled appointment and plan its reminders.

    No conflict check happens here: slot availability is advisory and two
    clients booking the same slot concurrently will both succeed.

    `now`, when given, is used to skip reminders that are already due.
    With commit=False the rows are only flushed and the caller commits.
    """
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time")

    appointment = Appointment(
        consultant_id=consultant_id,
        client_id=client_id,
        appointment_type_id=appointment_type_id,
        start_time=to_utc_naive(start_time),
        end_time=to_utc_naive(end_time),
        status=AppointmentStatus.SCHEDULED.value,
        notes=notes,
        recurring_pattern_id=recurring_pattern_id,
        is_recurring=recurring_pattern_id is not None,
    )
    db.add(appointment)
    db.flush()

    if now is not None:
        schedule_reminders(db, appointment, now)

    if commit:
        db.commit()
        db.refresh(appointment)

    logger.info(
        "Created appointment %s for consultant %s / client %s at %s",
        appointment.id,
        consultant_id,
        client_id,
        appointment.start_time.isoformat(),
    )
    return appointment


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter_by(id=appointment_id).first()
    if appointment is None:
        raise NotFoundError(f"Appointment {appointment_id} not found")
    return appointment


def list_upcoming_appointments(
    db: Session,
    user_id: str,
    role: str,
    now: datetime,
) -> List[Appointment]:
    column = _user_column(role)
    return (
        db.query(Appointment)
        .filter(
            column == user_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.start_time >= to_utc_naive(now),
        )
        .order_by(Appointment.start_time.asc())
        .all()
    )


def list_past_appointments(db: Session, user_id: str, role: str) -> List[Appointment]:
    column = _user_column(role)
    return (
        db.query(Appointment)
        .filter(
            column == user_id,
            Appointment.status.in_(PAST_STATUSES),
        )
        .order_by(Appointment.start_time.desc())
        .all()
    )


def cancel_appointment(db: Session, appointment_id: int, commit: bool = True) -> Appointment:
    """
    Mark an appointment cancelled and drop its pending reminders.

    Cancelling an already cancelled appointment is a no-op.
    """
    appointment = get_appointment(db, appointment_id)
    if appointment.status == AppointmentStatus.CANCELLED.value:
        return appointment
    if appointment.status != AppointmentStatus.SCHEDULED.value:
        raise ValidationError(f"Cannot cancel an appointment that is {appointment.status}")

    appointment.status = AppointmentStatus.CANCELLED.value
    drop_pending_reminders(db, appointment.id)
    if commit:
        db.commit()
        db.refresh(appointment)

    logger.info("Cancelled appointment %s", appointment.id)
    return appointment


def set_appointment_status(db: Session, appointment_id: int, status: str) -> Appointment:
    """
    Close a scheduled appointment as completed or no-show.

    Cancellation goes through cancel_appointment.
    """
    try:
        new_status = AppointmentStatus(status)
    except ValueError as e:
        raise ValidationError(f"Unknown appointment status {status!r}") from e

    if new_status not in (AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW):
        raise ValidationError("status can only be set to completed or no-show")

    appointment = get_appointment(db, appointment_id)
    if appointment.status != AppointmentStatus.SCHEDULED.value:
        raise ValidationError(f"Appointment {appointment_id} is already {appointment.status}")

    appointment.status = new_status.value
    drop_pending_reminders(db, appointment.id)
    db.commit()
    db.refresh(appointment)

    logger.info("Appointment %s marked %s", appointment.id, new_status.value)
    return appointment


def reschedule_appointment(
    db: Session,
    appointment_id: int,
    *,
    start_time: datetime,
    end_time: datetime,
    now: Optional[datetime] = None,
) -> Appointment:
    """Move a scheduled appointment and re-plan its reminders."""
    if end_time <= start_time:
        raise ValidationError("end_time must be after start_time")

    appointment = get_appointment(db, appointment_id)
    if appointment.status != AppointmentStatus.SCHEDULED.value:
        raise ValidationError(f"Cannot reschedule an appointment that is {appointment.status}")

    appointment.start_time = to_utc_naive(start_time)
    appointment.end_time = to_utc_naive(end_time)

    drop_pending_reminders(db, appointment.id)
    if now is not None:
        schedule_reminders(db, appointment, now)

    db.commit()
    db.refresh(appointment)

    logger.info(
        "Rescheduled appointment %s to %s",
        appointment.id,
        appointment.start_time.isoformat(),
    )
    return appointment
