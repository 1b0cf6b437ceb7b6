# consult_scheduler/services/reminder_service.py
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from consult_scheduler.config import get_settings
from consult_scheduler.models.appointment import Appointment
from consult_scheduler.models.reminder import Reminder, ReminderChannel
from consult_scheduler.scheduling.clock import to_utc_naive

logger = logging.getLogger(__name__)


def plan_reminder_times(
    start_time: datetime,
    now: datetime,
    intervals_minutes: Iterable[int],
) -> List[Tuple[int, datetime]]:
    """
    (minutes_before, due_at) pairs for every interval still in the future.

    A reminder that would already be due at `now` is skipped.
    """
    planned: List[Tuple[int, datetime]] = []
    for minutes in sorted(set(intervals_minutes), reverse=True):
        due = start_time - timedelta(minutes=minutes)
        if due > now:
            planned.append((minutes, due))
    return planned


def schedule_reminders(
    db: Session,
    appointment: Appointment,
    now: datetime,
    intervals_minutes: Optional[Iterable[int]] = None,
    channel: str = ReminderChannel.EMAIL,
) -> List[Reminder]:
    """
    Add reminder rows for both the consultant and the client.

    Rows are added to the session; the caller commits.
    """
    if intervals_minutes is None:
        intervals_minutes = get_settings().REMINDER_INTERVALS_MINUTES

    planned = plan_reminder_times(appointment.start_time, to_utc_naive(now), intervals_minutes)

    created: List[Reminder] = []
    for user_id in (appointment.consultant_id, appointment.client_id):
        for minutes, due in planned:
            reminder = Reminder(
                appointment_id=appointment.id,
                user_id=user_id,
                channel=channel,
                minutes_before=minutes,
                scheduled_for=due,
                sent=False,
            )
            db.add(reminder)
            created.append(reminder)

    return created


def drop_pending_reminders(db: Session, appointment_id: int) -> int:
    """Delete reminders not yet sent for an appointment. Returns the count."""
    deleted = (
        db.query(Reminder)
        .filter(
            Reminder.appointment_id == appointment_id,
            Reminder.sent.is_(False),
        )
        .delete(synchronize_session=False)
    )
    if deleted:
        logger.info("Dropped %d pending reminders for appointment %s", deleted, appointment_id)
    return deleted
