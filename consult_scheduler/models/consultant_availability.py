from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, JSON

from consult_scheduler.models.base import Base


class ConsultantAvailability(Base):
    """
    Stored availability record for one consultant.

    weekly_schedule and exceptions keep the camelCase record shape:
      weekly_schedule: {"1": {"start": "09:00", "end": "17:00",
                              "breakStart": "12:00", "breakEnd": "13:00"}, ...}
      exceptions: [{"date": "2025-01-06", "available": false}, ...]
    """

    __tablename__ = "consultant_availability"

    id = Column(Integer, primary_key=True, index=True)

    consultant_id = Column(String, nullable=False, unique=True, index=True)

    weekly_schedule = Column(JSON, nullable=False, default=dict)
    exceptions = Column(JSON, nullable=False, default=list)

    timezone = Column(String(64), nullable=False, default="UTC")

    buffer_between_appointments = Column(Integer, nullable=False, default=0)  # minutes
    max_advance_booking = Column(Integer, nullable=False, default=30)  # days
    min_notice_booking = Column(Integer, nullable=False, default=0)  # hours

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def to_record(self) -> dict:
        return {
            "consultantId": self.consultant_id,
            "weeklySchedule": self.weekly_schedule or {},
            "exceptions": self.exceptions or [],
            "timezone": self.timezone,
            "bufferBetweenAppointments": self.buffer_between_appointments,
            "maxAdvanceBooking": self.max_advance_booking,
            "minNoticeBooking": self.min_notice_booking,
        }
