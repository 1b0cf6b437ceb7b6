from consult_scheduler.models.base import Base  # noqa: F401

from consult_scheduler.models.appointment import Appointment, AppointmentStatus  # noqa: F401
from consult_scheduler.models.appointment_type import AppointmentType  # noqa: F401
from consult_scheduler.models.consultant_availability import ConsultantAvailability  # noqa: F401
from consult_scheduler.models.recurring_pattern import RecurringPattern  # noqa: F401
from consult_scheduler.models.reminder import Reminder  # noqa: F401
