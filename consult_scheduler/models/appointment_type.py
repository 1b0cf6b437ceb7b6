from sqlalchemy import Column, Float, Integer, String, Text

from consult_scheduler.models.base import Base


class AppointmentType(Base):
    """A kind of session a consultant offers, e.g. "Initial consultation, 60 min"."""

    __tablename__ = "appointment_types"

    id = Column(Integer, primary_key=True, index=True)
    consultant_id = Column(String, nullable=False, index=True)

    name = Column(String(255), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    color = Column(String(16), nullable=True)
