from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator


class AppointmentCreate(BaseModel):
    consultant_id: str
    client_id: str
    start_time: datetime
    end_time: datetime
    appointment_type_id: Optional[int] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_end_after_start(self) -> "AppointmentCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class RecurrencePatternIn(BaseModel):
    frequency: Literal["daily", "weekly", "monthly"]
    interval: int = 1
    # 0 = Sunday ... 6 = Saturday; required for weekly
    daysOfWeek: Optional[List[int]] = None
    endDate: Optional[date] = None
    occurrences: Optional[int] = None


class RecurringAppointmentCreate(AppointmentCreate):
    pattern: RecurrencePatternIn


class AppointmentStatusUpdate(BaseModel):
    status: Literal["completed", "no-show"]


class AppointmentReschedule(BaseModel):
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def check_end_after_start(self) -> "AppointmentReschedule":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AppointmentTypeCreate(BaseModel):
    consultant_id: str
    name: str
    duration_minutes: int
    price: float = 0.0
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("duration_minutes")
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("duration_minutes must be positive")
        return v


class AppointmentTypeUpdate(BaseModel):
    name: Optional[str] = None
    duration_minutes: Optional[int] = None
    price: Optional[float] = None
    description: Optional[str] = None
    color: Optional[str] = None
