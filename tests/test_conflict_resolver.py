import subprocess
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

from consult_scheduler.scheduling.availability import build_profile
from consult_scheduler.scheduling.conflict_resolver import (
    BookedAppointment,
    buffer_slot_count,
    resolve_conflicts,
)
from consult_scheduler.scheduling.slot_generator import TimeSlot, generate_slots
from consult_scheduler.scheduling.status import AppointmentStatus

MONDAY = date(2025, 1, 6)


def _at(hour, minute=0):
    return datetime.combine(MONDAY, time(hour, minute), tzinfo=timezone.utc)


def _slots(start_hour, count, length=30):
    start = _at(start_hour)
    step = timedelta(minutes=length)
    return [TimeSlot(start=start + i * step, end=start + (i + 1) * step) for i in range(count)]


def _availability(slots):
    return [s.available for s in slots]


def test_only_the_overlapping_slot_is_marked():
    # 09:00-09:30, 09:30-10:00, 10:00-10:30
    slots = _slots(9, 3)
    booked = [BookedAppointment(start_time=_at(9, 30), end_time=_at(10))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=0)

    assert _availability(resolved) == [True, False, True]


def test_buffer_marks_one_neighbour_each_side():
    slots = _slots(9, 5)
    booked = [BookedAppointment(start_time=_at(10), end_time=_at(10, 30))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=30)

    # 09:00 ok, 09:30 buffer, 10:00 booked, 10:30 buffer, 11:00 ok
    assert _availability(resolved) == [True, False, False, False, True]


def test_buffer_rounds_up_to_whole_slots():
    assert buffer_slot_count(10, 30) == 1
    assert buffer_slot_count(45, 30) == 2
    assert buffer_slot_count(0, 30) == 0

    slots = _slots(9, 7)
    booked = [BookedAppointment(start_time=_at(10, 30), end_time=_at(11))]
    resolved = resolve_conflicts(slots, booked, buffer_minutes=45)

    assert _availability(resolved) == [True, False, False, False, False, False, True]


def test_buffer_marked_slots_do_not_spread_further():
    slots = _slots(9, 6)
    booked = [BookedAppointment(start_time=_at(9), end_time=_at(9, 30))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=30)

    assert _availability(resolved) == [False, False, True, True, True, True]


def test_partial_overlaps_are_caught():
    slots = _slots(9, 4)
    booked = [BookedAppointment(start_time=_at(9, 15), end_time=_at(10, 15))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=0)

    assert _availability(resolved) == [False, False, False, True]


def test_slot_containing_a_shorter_appointment_is_caught():
    slots = _slots(9, 2, length=60)
    booked = [BookedAppointment(start_time=_at(9, 15), end_time=_at(9, 45))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=0)

    assert _availability(resolved) == [False, True]


def test_cancelled_appointments_are_ignored():
    slots = _slots(9, 2)
    booked = [BookedAppointment(start_time=_at(9), end_time=_at(9, 30), status="cancelled")]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=30)

    assert _availability(resolved) == [True, True]


def test_input_is_not_mutated_and_order_is_kept():
    slots = _slots(9, 3)
    booked = [BookedAppointment(start_time=_at(9), end_time=_at(9, 30))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=0)

    assert all(s.available for s in slots)
    assert [s.start for s in resolved] == [s.start for s in slots]
    assert [s.end for s in resolved] == [s.end for s in slots]


def test_buffer_reaches_across_a_break_gap():
    profile = build_profile(
        {
            "consultantId": "c-1",
            "weeklySchedule": {
                "1": {"start": "11:00", "end": "14:00", "breakStart": "12:00", "breakEnd": "13:00"},
            },
            "timezone": "UTC",
        }
    )
    # 11:00, 11:30, 13:00, 13:30
    slots = generate_slots(profile, MONDAY, 30)
    booked = [BookedAppointment(start_time=_at(11, 30), end_time=_at(12))]

    resolved = resolve_conflicts(slots, booked, buffer_minutes=30)

    # Index-based buffer: the 13:00 slot right after the break is blocked too
    assert _availability(resolved) == [False, False, False, True]


def test_empty_inputs():
    assert resolve_conflicts([], [], buffer_minutes=30) == []
    slots = _slots(9, 2)
    assert _availability(resolve_conflicts(slots, [], buffer_minutes=30)) == [True, True]


def test_models_share_the_engine_status_enum():
    from consult_scheduler.models.appointment import AppointmentStatus as ModelStatus

    assert ModelStatus is AppointmentStatus


def test_engine_imports_without_the_orm():
    code = (
        "import sys\n"
        "import consult_scheduler.scheduling.conflict_resolver\n"
        "import consult_scheduler.scheduling.recurrence\n"
        "import consult_scheduler.scheduling.booking_window\n"
        "assert 'sqlalchemy' not in sys.modules, sorted(m for m in sys.modules if m.startswith('sqlalchemy'))\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=Path(__file__).resolve().parents[1],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
