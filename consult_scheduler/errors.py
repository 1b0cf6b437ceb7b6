# consult_scheduler/errors.py


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling engine and services."""


class ValidationError(SchedulingError, ValueError):
    """
    Malformed availability profile, recurrence pattern or booking input.

    Subclasses ValueError so callers that already map ValueError to a
    400 response keep working.
    """


class NotFoundError(SchedulingError, LookupError):
    """Referenced consultant, profile, appointment or pattern is absent."""
