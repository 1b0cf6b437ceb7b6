# consult_scheduler/services/availability_service.py
import logging
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from consult_scheduler.errors import NotFoundError
from consult_scheduler.models.consultant_availability import ConsultantAvailability
from consult_scheduler.scheduling.availability import AvailabilityProfile, build_profile

logger = logging.getLogger(__name__)


def _get_row(db: Session, consultant_id: str) -> Optional[ConsultantAvailability]:
    return (
        db.query(ConsultantAvailability)
        .filter(ConsultantAvailability.consultant_id == consultant_id)
        .first()
    )


def get_availability_profile(db: Session, consultant_id: str) -> AvailabilityProfile:
    """
    Load and validate the stored availability for a consultant.

    Raises NotFoundError if the consultant has never saved one.
    """
    row = _get_row(db, consultant_id)
    if row is None:
        raise NotFoundError(f"No availability profile for consultant {consultant_id}")
    return build_profile(row.to_record(), consultant_id=consultant_id)


def upsert_availability_profile(
    db: Session,
    consultant_id: str,
    record: Mapping[str, Any],
) -> AvailabilityProfile:
    """
    Validate `record` and store it as the consultant's availability.

    Behavior:
    - The whole record is validated before anything is written, so an
      invalid record leaves the stored profile untouched.
    - An existing profile is replaced (last write wins).

    Returns the validated profile.
    """
    profile = build_profile(record, consultant_id=consultant_id)
    stored = profile.to_record()

    row = _get_row(db, consultant_id)
    if row is None:
        row = ConsultantAvailability(consultant_id=consultant_id)
        db.add(row)

    row.weekly_schedule = stored["weeklySchedule"]
    row.exceptions = stored["exceptions"]
    row.timezone = profile.timezone
    row.buffer_between_appointments = profile.buffer_between_appointments
    row.max_advance_booking = profile.max_advance_booking
    row.min_notice_booking = profile.min_notice_booking

    db.commit()
    db.refresh(row)

    logger.info(
        "Saved availability for consultant %s (%d working days, %d exceptions)",
        consultant_id,
        len(profile.weekly_schedule),
        len(profile.exceptions),
    )
    return profile
