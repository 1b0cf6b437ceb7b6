# consult_scheduler/services/recurring_service.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from consult_scheduler.config import get_settings
from consult_scheduler.errors import NotFoundError
from consult_scheduler.models.appointment import Appointment
from consult_scheduler.models.consultant_availability import ConsultantAvailability
from consult_scheduler.models.recurring_pattern import RecurringPattern
from consult_scheduler.scheduling.recurrence import AppointmentTemplate, build_pattern, expand
from consult_scheduler.scheduling.status import AppointmentStatus
from consult_scheduler.services.appointment_service import cancel_appointment, create_appointment

logger = logging.getLogger(__name__)


@dataclass
class RecurringBookingResult:
    pattern: RecurringPattern
    appointments: List[Appointment]


def _consultant_zone(db: Session, consultant_id: str) -> Optional[ZoneInfo]:
    row = (
        db.query(ConsultantAvailability)
        .filter(ConsultantAvailability.consultant_id == consultant_id)
        .first()
    )
    if row is None:
        return None
    return ZoneInfo(row.timezone)


def _localize(value: datetime, zone: Optional[ZoneInfo]) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone) if zone is not None else value


def create_recurring_appointments(
    db: Session,
    *,
    consultant_id: str,
    client_id: str,
    start_time: datetime,
    end_time: datetime,
    pattern_record: Mapping[str, Any],
    appointment_type_id: Optional[int] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RecurringBookingResult:
    """
    Store a recurrence pattern and create one appointment per instance.

    - The pattern is validated and fully expanded before anything is
      written; an invalid pattern raises ValidationError with no rows created.
    - Instances are expanded in the consultant's timezone (when they have
      an availability profile) so the wall-clock time stays fixed across
      DST changes.
    - The pattern, every instance and their reminders are committed together;
      a failure part way through rolls the whole series back.
    """
    pattern = build_pattern(pattern_record)

    zone = _consultant_zone(db, consultant_id)
    template = AppointmentTemplate(
        start=_localize(start_time, zone),
        end=_localize(end_time, zone),
    )
    instances = expand(
        template,
        pattern,
        max_instances=get_settings().MAX_RECURRENCE_INSTANCES,
    )

    pattern_row = RecurringPattern(
        consultant_id=consultant_id,
        client_id=client_id,
        frequency=pattern.frequency.value,
        interval=pattern.interval,
        days_of_week=sorted(pattern.days_of_week) if pattern.days_of_week else None,
        end_date=pattern.end_date,
        occurrences=pattern.occurrences,
    )
    try:
        db.add(pattern_row)
        db.flush()

        appointments = [
            create_appointment(
                db,
                consultant_id=consultant_id,
                client_id=client_id,
                start_time=instance.start,
                end_time=instance.end,
                appointment_type_id=appointment_type_id,
                notes=notes,
                recurring_pattern_id=pattern_row.id,
                now=now,
                commit=False,
            )
            for instance in instances
        ]
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Created %d recurring appointments for pattern %s (%s every %d)",
        len(appointments),
        pattern_row.id,
        pattern.frequency.value,
        pattern.interval,
    )
    return RecurringBookingResult(pattern=pattern_row, appointments=appointments)


def cancel_recurring_appointments(db: Session, pattern_id: int) -> List[Appointment]:
    """
    Cancel every still-scheduled appointment of a series and mark the pattern ended.

    Completed / no-show instances are left as they are. The pattern row is
    kept so every instance still points at its series; cancelling an ended
    series again cancels nothing.
    """
    pattern_row = db.query(RecurringPattern).filter_by(id=pattern_id).first()
    if pattern_row is None:
        raise NotFoundError(f"Recurring pattern {pattern_id} not found")

    scheduled = (
        db.query(Appointment)
        .filter(
            Appointment.recurring_pattern_id == pattern_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
        )
        .order_by(Appointment.start_time.asc())
        .all()
    )

    cancelled = [cancel_appointment(db, appt.id, commit=False) for appt in scheduled]

    if pattern_row.ended_at is None:
        pattern_row.ended_at = datetime.utcnow()
    db.commit()

    logger.info("Cancelled %d appointments of recurring pattern %s", len(cancelled), pattern_id)
    return cancelled
