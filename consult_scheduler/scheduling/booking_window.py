# consult_scheduler/scheduling/booking_window.py
from datetime import date, datetime, timedelta
from typing import List, Sequence

from consult_scheduler.scheduling.availability import AvailabilityProfile
from consult_scheduler.scheduling.slot_generator import TimeSlot


def local_today(profile: AvailabilityProfile, now: datetime) -> date:
    return now.astimezone(profile.zone).date()


def is_date_bookable(profile: AvailabilityProfile, target_date: date, now: datetime) -> bool:
    """
    True if `target_date` lies between today and today + maxAdvanceBooking
    days, both inclusive, with "today" taken in the consultant's zone.
    """
    today = local_today(profile, now)
    last_day = today + timedelta(days=profile.max_advance_booking)
    return today <= target_date <= last_day


def earliest_bookable_start(profile: AvailabilityProfile, now: datetime) -> datetime:
    return now + timedelta(hours=profile.min_notice_booking)


def apply_min_notice(
    slots: Sequence[TimeSlot],
    profile: AvailabilityProfile,
    now: datetime,
) -> List[TimeSlot]:
    """Drop slots that start before now + minNoticeBooking hours."""
    cutoff = earliest_bookable_start(profile, now)
    return [slot for slot in slots if slot.start >= cutoff]
