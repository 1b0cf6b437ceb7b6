from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, JSON

from consult_scheduler.models.base import Base


class RecurringPattern(Base):
    __tablename__ = "recurring_patterns"

    id = Column(Integer, primary_key=True, index=True)

    consultant_id = Column(String, nullable=False, index=True)
    client_id = Column(String, nullable=False, index=True)

    frequency = Column(String(16), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    days_of_week = Column(JSON, nullable=True)

    # Exactly one of these is set
    end_date = Column(Date, nullable=True)
    occurrences = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Set when the series is cancelled; the row stays so instances keep their link
    ended_at = Column(DateTime, nullable=True)
