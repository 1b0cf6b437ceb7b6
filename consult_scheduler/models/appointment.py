from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from consult_scheduler.models.base import Base
from consult_scheduler.scheduling.status import AppointmentStatus


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    consultant_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=False, index=True)

    appointment_type_id = Column(
        Integer,
        ForeignKey("appointment_types.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Naive UTC instants
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    # Store status as a simple string; AppointmentStatus is still used in Python
    status = Column(
        String(32),
        nullable=False,
        default=AppointmentStatus.SCHEDULED.value,
        index=True,
    )

    notes = Column(Text, nullable=True)

    recurring_pattern_id = Column(
        Integer,
        ForeignKey("recurring_patterns.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_recurring = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )
