# consult_scheduler/scheduling/conflict_resolver.py
import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Set

from consult_scheduler.scheduling.slot_generator import TimeSlot
from consult_scheduler.scheduling.status import AppointmentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookedAppointment:
    """Read-only view of an existing appointment used for conflict checks."""

    start_time: datetime
    end_time: datetime
    status: str = AppointmentStatus.SCHEDULED.value
    id: Optional[int] = None

    @property
    def is_scheduled(self) -> bool:
        return self.status == AppointmentStatus.SCHEDULED.value


def overlaps(slot: TimeSlot, appt: BookedAppointment) -> bool:
    """
    Half-open interval intersection between a slot and an appointment.

    Also catches a slot that fully contains a shorter appointment.
    """
    return slot.start < appt.end_time and slot.end > appt.start_time


def buffer_slot_count(buffer_minutes: int, slot_length_minutes: int) -> int:
    if buffer_minutes <= 0 or slot_length_minutes <= 0:
        return 0
    return math.ceil(buffer_minutes / slot_length_minutes)


def resolve_conflicts(
    slots: Sequence[TimeSlot],
    booked_appointments: Iterable[BookedAppointment],
    buffer_minutes: int,
    slot_length_minutes: Optional[int] = None,
) -> List[TimeSlot]:
    """
    Mark slots taken by scheduled appointments, plus their buffer zone.

    Returns new TimeSlot objects in the input order; the input is not
    modified and start/end are never changed.

    Buffer propagation is index-based: each directly conflicting slot also
    blocks ceil(buffer / slot_length) neighbours on each side of it in the
    array. Slots are assumed contiguous and equally long, so a buffer can
    reach across a break gap.
    """
    resolved = [replace(slot) for slot in slots]
    if not resolved:
        return resolved

    busy = [a for a in booked_appointments if a.is_scheduled]

    conflicting: Set[int] = set()
    for index, slot in enumerate(resolved):
        if any(overlaps(slot, appt) for appt in busy):
            conflicting.add(index)

    if slot_length_minutes is None:
        slot_length_minutes = resolved[0].length_minutes
    reach = buffer_slot_count(buffer_minutes, slot_length_minutes)

    blocked = set(conflicting)
    for index in conflicting:
        for offset in range(1, reach + 1):
            if index - offset >= 0:
                blocked.add(index - offset)
            if index + offset < len(resolved):
                blocked.add(index + offset)

    for index in blocked:
        resolved[index].available = False

    logger.debug(
        "%d of %d slots blocked (%d direct conflicts, buffer reach %d)",
        len(blocked),
        len(resolved),
        len(conflicting),
        reach,
    )
    return resolved
