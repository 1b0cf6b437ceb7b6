# consult_scheduler/services/slot_service.py
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from consult_scheduler.config import get_settings
from consult_scheduler.models.appointment import Appointment
from consult_scheduler.scheduling.availability import AvailabilityProfile
from consult_scheduler.scheduling.booking_window import apply_min_notice, is_date_bookable
from consult_scheduler.scheduling.clock import from_utc_naive, to_utc_naive
from consult_scheduler.scheduling.conflict_resolver import BookedAppointment, resolve_conflicts
from consult_scheduler.scheduling.slot_generator import TimeSlot, generate_slots
from consult_scheduler.scheduling.status import AppointmentStatus
from consult_scheduler.services.availability_service import get_availability_profile

logger = logging.getLogger(__name__)


def fetch_booked_appointments(
    db: Session,
    profile: AvailabilityProfile,
    target_date: date,
) -> List[BookedAppointment]:
    """
    Scheduled appointments of the consultant whose interval intersects
    `target_date` (a local day in the consultant's zone).
    """
    zone = profile.zone
    day_start = datetime.combine(target_date, time.min, tzinfo=zone)
    day_end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=zone)

    rows = (
        db.query(Appointment)
        .filter(
            Appointment.consultant_id == profile.consultant_id,
            Appointment.status == AppointmentStatus.SCHEDULED.value,
            Appointment.start_time < to_utc_naive(day_end),
            Appointment.end_time > to_utc_naive(day_start),
        )
        .order_by(Appointment.start_time.asc())
        .all()
    )

    return [
        BookedAppointment(
            id=row.id,
            start_time=from_utc_naive(row.start_time),
            end_time=from_utc_naive(row.end_time),
            status=row.status,
        )
        for row in rows
    ]


def get_available_time_slots(
    db: Session,
    consultant_id: str,
    target_date: date,
    now: datetime,
    slot_length_minutes: Optional[int] = None,
) -> List[TimeSlot]:
    """
    Slots for one consultant and date, with booked ones marked unavailable.

    Steps:
    - load the consultant's availability (NotFoundError if none)
    - dates outside [today, today + maxAdvanceBooking] give no slots
    - generate slots, mark conflicts and buffer zones
    - drop slots starting before now + minNoticeBooking

    The result is a snapshot: nothing is reserved, so a slot shown as
    available can still be taken by a concurrent booking.
    """
    if slot_length_minutes is None:
        slot_length_minutes = get_settings().DEFAULT_SLOT_LENGTH_MINUTES

    profile = get_availability_profile(db, consultant_id)

    if not is_date_bookable(profile, target_date, now):
        logger.info(
            "Date %s is outside the booking window for consultant %s",
            target_date.isoformat(),
            consultant_id,
        )
        return []

    slots = generate_slots(profile, target_date, slot_length_minutes)
    if not slots:
        return []

    booked = fetch_booked_appointments(db, profile, target_date)
    slots = resolve_conflicts(
        slots,
        booked,
        profile.buffer_between_appointments,
        slot_length_minutes=slot_length_minutes,
    )
    return apply_min_notice(slots, profile, now)
