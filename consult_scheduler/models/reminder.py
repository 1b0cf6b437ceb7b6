from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from consult_scheduler.models.base import Base


class ReminderChannel:
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"


class Reminder(Base):
    """
    A reminder planned for one participant of an appointment.

    Delivery is done elsewhere; this only records what is due and when.
    """

    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)

    appointment_id = Column(
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id = Column(String, nullable=False, index=True)
    channel = Column(String(16), nullable=False, default=ReminderChannel.EMAIL)

    # Minutes before the appointment start
    minutes_before = Column(Integer, nullable=False)
    scheduled_for = Column(DateTime, nullable=False, index=True)

    sent = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    appointment = relationship("Appointment", backref="reminders")
