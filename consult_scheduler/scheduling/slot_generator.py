# consult_scheduler/scheduling/slot_generator.py
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List

from consult_scheduler.errors import ValidationError
from consult_scheduler.scheduling.availability import AvailabilityProfile

logger = logging.getLogger(__name__)

DEFAULT_SLOT_LENGTH_MINUTES = 30


@dataclass
class TimeSlot:
    start: datetime
    end: datetime
    available: bool = True

    @property
    def length_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def to_dict(self) -> Dict[str, object]:
        return {
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "available": self.available,
        }


def generate_slots(
    profile: AvailabilityProfile,
    target_date: date,
    slot_length_minutes: int = DEFAULT_SLOT_LENGTH_MINUTES,
) -> List[TimeSlot]:
    """
    Candidate slots for one date, in chronological order.

    - Walks the effective working hours in `slot_length_minutes` steps
    - Only whole slots are emitted; a trailing partial step is dropped
    - Slots starting inside [break_start, break_end) are left out entirely
    - Every slot starts out available; booked appointments are applied
      afterwards by the conflict resolver
    - Wall-clock starts that do not exist in the zone (skipped by a DST
      spring-forward) are left out, so no two slots share a UTC instant
    """
    if slot_length_minutes <= 0:
        raise ValidationError("slot_length_minutes must be positive")

    hours = profile.effective_schedule(target_date)
    if hours is None:
        logger.debug(
            "consultant %s has no working hours on %s",
            profile.consultant_id,
            target_date.isoformat(),
        )
        return []

    zone = profile.zone
    start = datetime.combine(target_date, hours.start, tzinfo=zone)
    end = datetime.combine(target_date, hours.end, tzinfo=zone)

    break_start = break_end = None
    if hours.break_start is not None and hours.break_end is not None:
        break_start = datetime.combine(target_date, hours.break_start, tzinfo=zone)
        break_end = datetime.combine(target_date, hours.break_end, tzinfo=zone)

    step = timedelta(minutes=slot_length_minutes)
    slots: List[TimeSlot] = []
    current = start

    while current + step <= end:
        in_break = break_start is not None and break_start <= current < break_end
        if not in_break and _exists_locally(current):
            slots.append(TimeSlot(start=current, end=current + step))
        current += step

    return slots


def _exists_locally(value: datetime) -> bool:
    """False for wall-clock times skipped by a DST transition."""
    round_trip = value.astimezone(timezone.utc).astimezone(value.tzinfo)
    return round_trip.replace(tzinfo=None) == value.replace(tzinfo=None)
