# consult_scheduler/scheduling/clock.py
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """
    FastAPI dependency returning the clock used for booking-window checks.

    Tests override this to pin "now".
    """
    return utc_now


def to_utc_naive(value: datetime) -> datetime:
    """
    Aware instant -> naive UTC, the form stored in the database.

    Naive input is taken to already be UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
