from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DayScheduleIn(BaseModel):
    start: str = Field(examples=["09:00"])
    end: str = Field(examples=["17:00"])
    breakStart: Optional[str] = None
    breakEnd: Optional[str] = None


class CustomHoursIn(BaseModel):
    start: str
    end: str


class DateExceptionIn(BaseModel):
    date: str = Field(examples=["2025-01-06"])
    available: bool
    customHours: Optional[CustomHoursIn] = None


class AvailabilityPayload(BaseModel):
    """
    Raw availability record as the booking UI sends it.

    Only the shape is checked here; schedule invariants (start < end,
    break inside hours, known timezone, ...) are enforced when the
    profile is built and reported as 400.
    """

    # Keys are days of week, 0 = Sunday ... 6 = Saturday
    weeklySchedule: Dict[str, DayScheduleIn] = Field(default_factory=dict)
    exceptions: List[DateExceptionIn] = Field(default_factory=list)
    timezone: str = "UTC"
    bufferBetweenAppointments: int = 0
    maxAdvanceBooking: int = 30
    minNoticeBooking: int = 0
