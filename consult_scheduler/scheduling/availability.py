# consult_scheduler/scheduling/availability.py
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from consult_scheduler.errors import ValidationError

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

DAY_NAMES = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return d.isoweekday() % 7


def parse_hhmm(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not _HHMM_RE.match(value):
        raise ValidationError(f"{field_name} must be in HH:mm format, got {value!r}")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def parse_iso_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be in YYYY-MM-DD format, got {value!r}") from e


def _pick(record: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in record:
        return record[camel]
    return record.get(snake, default)


def _non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if value < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    return value


@dataclass(frozen=True)
class DaySchedule:
    start: time
    end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValidationError("day schedule start must be before end")
        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError("breakStart and breakEnd must be given together")
        if self.break_start is not None:
            if not (self.start <= self.break_start < self.break_end <= self.end):
                raise ValidationError("break must lie within working hours and start before it ends")

    @property
    def has_break(self) -> bool:
        return self.break_start is not None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], label: str = "day") -> "DaySchedule":
        if not isinstance(record, Mapping):
            raise ValidationError(f"{label}: schedule must be an object")
        break_start = _pick(record, "breakStart", "break_start")
        break_end = _pick(record, "breakEnd", "break_end")
        return cls(
            start=parse_hhmm(record.get("start"), f"{label}.start"),
            end=parse_hhmm(record.get("end"), f"{label}.end"),
            break_start=parse_hhmm(break_start, f"{label}.breakStart") if break_start else None,
            break_end=parse_hhmm(break_end, f"{label}.breakEnd") if break_end else None,
        )

    def to_record(self) -> Dict[str, str]:
        out = {"start": format_hhmm(self.start), "end": format_hhmm(self.end)}
        if self.has_break:
            out["breakStart"] = format_hhmm(self.break_start)
            out["breakEnd"] = format_hhmm(self.break_end)
        return out


@dataclass(frozen=True)
class CustomHours:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValidationError("customHours start must be before end")


@dataclass(frozen=True)
class DateException:
    """Override of the weekly schedule for one calendar date."""

    date: date
    available: bool
    custom_hours: Optional[CustomHours] = None

    def __post_init__(self) -> None:
        if not self.available and self.custom_hours is not None:
            raise ValidationError("customHours only apply to an available exception")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DateException":
        if not isinstance(record, Mapping):
            raise ValidationError("exception must be an object")
        exc_date = parse_iso_date(record.get("date"), "exception.date")
        available = record.get("available")
        if not isinstance(available, bool):
            raise ValidationError(f"exception {exc_date}: available must be a boolean")
        hours = _pick(record, "customHours", "custom_hours")
        custom_hours = None
        if hours is not None and not isinstance(hours, Mapping):
            raise ValidationError(f"exception {exc_date}: customHours must be an object")
        if hours:
            custom_hours = CustomHours(
                start=parse_hhmm(hours.get("start"), f"exception {exc_date}.customHours.start"),
                end=parse_hhmm(hours.get("end"), f"exception {exc_date}.customHours.end"),
            )
        return cls(date=exc_date, available=available, custom_hours=custom_hours)

    def to_record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"date": self.date.isoformat(), "available": self.available}
        if self.custom_hours is not None:
            out["customHours"] = {
                "start": format_hhmm(self.custom_hours.start),
                "end": format_hhmm(self.custom_hours.end),
            }
        return out


@dataclass(frozen=True)
class WorkingHours:
    """Resolved hours for one date; the break may fall outside custom hours."""

    start: time
    end: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None


@dataclass(frozen=True)
class AvailabilityProfile:
    """
    A consultant's recurring weekly hours, date exceptions and booking policy.

    All HH:mm values are wall-clock times in `timezone`.
    Booking policy:
      - buffer_between_appointments: minutes kept free around a booking
      - max_advance_booking: days ahead a date may be booked
      - min_notice_booking: hours of notice required before a slot
    """

    consultant_id: str
    timezone: str
    weekly_schedule: Mapping[int, DaySchedule] = field(default_factory=dict)
    exceptions: Mapping[date, DateException] = field(default_factory=dict)
    buffer_between_appointments: int = 0
    max_advance_booking: int = 30
    min_notice_booking: int = 0

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def exception_for(self, target_date: date) -> Optional[DateException]:
        return self.exceptions.get(target_date)

    def effective_schedule(self, target_date: date) -> Optional["WorkingHours"]:
        """
        Weekly hours for the date with any exception applied.

        An unavailable exception closes the day. Custom hours replace
        start/end but keep the weekly break.
        """
        weekly = self.weekly_schedule.get(day_of_week(target_date))
        exception = self.exception_for(target_date)

        if exception is not None and not exception.available:
            return None

        if exception is not None and exception.custom_hours is not None:
            hours = exception.custom_hours
            return WorkingHours(
                start=hours.start,
                end=hours.end,
                break_start=weekly.break_start if weekly else None,
                break_end=weekly.break_end if weekly else None,
            )

        if weekly is None:
            return None
        return WorkingHours(weekly.start, weekly.end, weekly.break_start, weekly.break_end)

    def to_record(self) -> Dict[str, Any]:
        return {
            "consultantId": self.consultant_id,
            "weeklySchedule": {
                str(day): schedule.to_record()
                for day, schedule in sorted(self.weekly_schedule.items())
            },
            "exceptions": [
                exc.to_record() for _, exc in sorted(self.exceptions.items())
            ],
            "timezone": self.timezone,
            "bufferBetweenAppointments": self.buffer_between_appointments,
            "maxAdvanceBooking": self.max_advance_booking,
            "minNoticeBooking": self.min_notice_booking,
        }


def _parse_day_key(key: Any) -> int:
    if isinstance(key, bool):
        raise ValidationError(f"invalid day of week {key!r}")
    if isinstance(key, str) and key.strip().isdigit():
        key = int(key.strip())
    if not isinstance(key, int) or not 0 <= key <= 6:
        raise ValidationError(f"day of week must be 0-6 (0 = Sunday), got {key!r}")
    return key


def build_profile(record: Mapping[str, Any], consultant_id: Optional[str] = None) -> AvailabilityProfile:
    """
    Validate a raw availability record and build an AvailabilityProfile.

    Accepts the camelCase keys used by stored records (snake_case works too).
    Raises ValidationError on the first invariant violation; nothing is
    partially applied.
    """
    if not isinstance(record, Mapping):
        raise ValidationError("availability record must be an object")

    cid = consultant_id or _pick(record, "consultantId", "consultant_id")
    if not cid:
        raise ValidationError("consultantId is required")

    tz_name = record.get("timezone")
    if not isinstance(tz_name, str) or not tz_name:
        raise ValidationError("timezone is required")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"unknown timezone {tz_name!r}") from e

    raw_weekly = _pick(record, "weeklySchedule", "weekly_schedule") or {}
    if not isinstance(raw_weekly, Mapping):
        raise ValidationError("weeklySchedule must be an object keyed by day of week")

    weekly: Dict[int, DaySchedule] = {}
    for key, day_record in raw_weekly.items():
        day = _parse_day_key(key)
        if day in weekly:
            raise ValidationError(f"day {day} appears more than once in weeklySchedule")
        if day_record is None:
            continue
        weekly[day] = DaySchedule.from_record(day_record, label=DAY_NAMES[day])

    exceptions: Dict[date, DateException] = {}
    for exc_record in record.get("exceptions") or []:
        exc = DateException.from_record(exc_record)
        if exc.date in exceptions:
            raise ValidationError(f"duplicate exception for {exc.date.isoformat()}")
        exceptions[exc.date] = exc

    return AvailabilityProfile(
        consultant_id=str(cid),
        timezone=tz_name,
        weekly_schedule=weekly,
        exceptions=exceptions,
        buffer_between_appointments=_non_negative_int(
            _pick(record, "bufferBetweenAppointments", "buffer_between_appointments", 0),
            "bufferBetweenAppointments",
        ),
        max_advance_booking=_non_negative_int(
            _pick(record, "maxAdvanceBooking", "max_advance_booking", 30),
            "maxAdvanceBooking",
        ),
        min_notice_booking=_non_negative_int(
            _pick(record, "minNoticeBooking", "min_notice_booking", 0),
            "minNoticeBooking",
        ),
    )
