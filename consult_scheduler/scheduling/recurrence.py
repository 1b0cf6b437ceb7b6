# consult_scheduler/scheduling/recurrence.py
import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, FrozenSet, List, Mapping, Optional, Union

from dateutil.relativedelta import relativedelta

from consult_scheduler.errors import ValidationError
from consult_scheduler.scheduling.availability import day_of_week, parse_iso_date

logger = logging.getLogger(__name__)


class Frequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class EndOnDate:
    """Series stops after the last instance on or before `end_date`."""

    end_date: date


@dataclass(frozen=True)
class EndAfterOccurrences:
    count: int

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ValidationError("occurrences must be a positive integer")


RecurrenceEnd = Union[EndOnDate, EndAfterOccurrences]


@dataclass(frozen=True)
class RecurrencePattern:
    frequency: Frequency
    interval: int
    ends: RecurrenceEnd
    days_of_week: Optional[FrozenSet[int]] = None

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValidationError("interval must be at least 1")
        if self.days_of_week is not None:
            bad = [d for d in self.days_of_week if not 0 <= d <= 6]
            if bad:
                raise ValidationError(f"daysOfWeek must be 0-6 (0 = Sunday), got {sorted(bad)}")
        if self.frequency == Frequency.WEEKLY and not self.days_of_week:
            raise ValidationError("daysOfWeek is required for a weekly pattern")

    @property
    def end_date(self) -> Optional[date]:
        return self.ends.end_date if isinstance(self.ends, EndOnDate) else None

    @property
    def occurrences(self) -> Optional[int]:
        return self.ends.count if isinstance(self.ends, EndAfterOccurrences) else None

    def to_record(self) -> dict:
        out: dict = {"frequency": self.frequency.value, "interval": self.interval}
        if self.days_of_week is not None:
            out["daysOfWeek"] = sorted(self.days_of_week)
        if self.end_date is not None:
            out["endDate"] = self.end_date.isoformat()
        if self.occurrences is not None:
            out["occurrences"] = self.occurrences
        return out


@dataclass(frozen=True)
class AppointmentTemplate:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class AppointmentInstance:
    start: datetime
    end: datetime
    sequence: int


def build_pattern(record: Mapping[str, Any]) -> RecurrencePattern:
    """
    Validate a raw recurrence record.

    Exactly one of endDate / occurrences must be set; a pattern with
    neither would never terminate.
    """
    if not isinstance(record, Mapping):
        raise ValidationError("recurrence pattern must be an object")

    try:
        frequency = Frequency(record.get("frequency"))
    except ValueError as e:
        raise ValidationError(
            f"frequency must be one of {[f.value for f in Frequency]}"
        ) from e

    interval = record.get("interval", 1)
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise ValidationError("interval must be an integer")

    raw_days = record.get("daysOfWeek", record.get("days_of_week"))
    days: Optional[FrozenSet[int]] = None
    if raw_days is not None:
        if not isinstance(raw_days, (list, tuple, set, frozenset)):
            raise ValidationError("daysOfWeek must be a list of integers 0-6")
        if any(isinstance(d, bool) or not isinstance(d, int) for d in raw_days):
            raise ValidationError("daysOfWeek must be a list of integers 0-6")
        days = frozenset(raw_days)

    raw_end = record.get("endDate", record.get("end_date"))
    raw_occurrences = record.get("occurrences")
    if raw_end is not None and raw_occurrences is not None:
        raise ValidationError("set either endDate or occurrences, not both")
    if raw_end is None and raw_occurrences is None:
        raise ValidationError("recurrence needs an endDate or a number of occurrences")

    ends: RecurrenceEnd
    if raw_end is not None:
        ends = EndOnDate(parse_iso_date(raw_end, "endDate"))
    else:
        if isinstance(raw_occurrences, bool) or not isinstance(raw_occurrences, int):
            raise ValidationError("occurrences must be an integer")
        ends = EndAfterOccurrences(raw_occurrences)

    return RecurrencePattern(frequency=frequency, interval=interval, ends=ends, days_of_week=days)


def expand(
    template: AppointmentTemplate,
    pattern: RecurrencePattern,
    max_instances: Optional[int] = None,
) -> List[AppointmentInstance]:
    """
    Concrete instances of a recurring appointment, in order.

    Every instance keeps the template's wall-clock start and duration.
    For a weekly pattern, dates whose day of week is not in daysOfWeek are
    skipped one day at a time; after each emitted instance the cursor moves
    by `interval` days, weeks or months.
    """
    if template.end <= template.start:
        raise ValidationError("appointment end must be after start")

    duration = template.duration
    end_date = pattern.end_date
    occurrences = pattern.occurrences

    instances: List[AppointmentInstance] = []
    current = template.start
    count = 0

    while (end_date is None or current.date() <= end_date) and (
        occurrences is None or count < occurrences
    ):
        if (
            pattern.frequency == Frequency.WEEKLY
            and pattern.days_of_week
            and day_of_week(current.date()) not in pattern.days_of_week
        ):
            current += timedelta(days=1)
            continue

        if max_instances is not None and count >= max_instances:
            raise ValidationError(
                f"recurrence would create more than {max_instances} appointments"
            )

        instances.append(AppointmentInstance(start=current, end=current + duration, sequence=count))
        count += 1

        if pattern.frequency == Frequency.DAILY:
            current += timedelta(days=pattern.interval)
        elif pattern.frequency == Frequency.WEEKLY:
            current += timedelta(weeks=pattern.interval)
        else:
            # Stepped from the template start: Jan 31 -> Feb 28 -> Mar 31
            current = template.start + relativedelta(months=pattern.interval * count)

    logger.debug("expanded %s pattern into %d instances", pattern.frequency.value, len(instances))
    return instances
