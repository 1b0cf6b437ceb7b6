# consult_scheduler/routers/appointments.py
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from consult_scheduler.db.session import get_db
from consult_scheduler.errors import NotFoundError
from consult_scheduler.models.appointment import Appointment
from consult_scheduler.scheduling.clock import Clock, from_utc_naive, get_clock
from consult_scheduler.schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatusUpdate,
    RecurringAppointmentCreate,
)
from consult_scheduler.services.appointment_service import (
    cancel_appointment,
    create_appointment,
    get_appointment,
    list_past_appointments,
    list_upcoming_appointments,
    reschedule_appointment,
    set_appointment_status,
)
from consult_scheduler.services.recurring_service import (
    cancel_recurring_appointments,
    create_recurring_appointments,
)

router = APIRouter()

Role = Literal["consultant", "client"]


def _appointment_dict(a: Appointment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "consultant_id": a.consultant_id,
        "client_id": a.client_id,
        "appointment_type_id": a.appointment_type_id,
        "start_time": from_utc_naive(a.start_time).isoformat(),
        "end_time": from_utc_naive(a.end_time).isoformat(),
        "status": a.status,
        "notes": a.notes,
        "recurring_pattern_id": a.recurring_pattern_id,
        "is_recurring": a.is_recurring,
    }


@router.post("")
def book_appointment(
        payload: AppointmentCreate,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    """
    Book a single appointment.

    The slot is not re-checked against existing bookings here.
    """
    try:
        appointment = create_appointment(
            db,
            consultant_id=payload.consultant_id,
            client_id=payload.client_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            appointment_type_id=payload.appointment_type_id,
            notes=payload.notes,
            now=clock(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _appointment_dict(appointment)


@router.post("/recurring")
def book_recurring_appointments(
        payload: RecurringAppointmentCreate,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    """
    Expand a recurrence pattern and book every instance.

    Example pattern:
      {"frequency": "weekly", "interval": 1, "daysOfWeek": [1], "occurrences": 4}
    """
    try:
        result = create_recurring_appointments(
            db,
            consultant_id=payload.consultant_id,
            client_id=payload.client_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            pattern_record=payload.pattern.model_dump(exclude_none=True),
            appointment_type_id=payload.appointment_type_id,
            notes=payload.notes,
            now=clock(),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "recurring_pattern_id": result.pattern.id,
        "appointments": [_appointment_dict(a) for a in result.appointments],
    }


@router.post("/recurring/{pattern_id}/cancel")
def cancel_recurring(
        pattern_id: int,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        cancelled = cancel_recurring_appointments(db, pattern_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {
        "recurring_pattern_id": pattern_id,
        "cancelled_ids": [a.id for a in cancelled],
    }


@router.get("/users/{user_id}/upcoming")
def get_upcoming(
        user_id: str,
        role: Role,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    appointments = list_upcoming_appointments(db, user_id, role, clock())
    return {"user_id": user_id, "appointments": [_appointment_dict(a) for a in appointments]}


@router.get("/users/{user_id}/past")
def get_past(
        user_id: str,
        role: Role,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    appointments = list_past_appointments(db, user_id, role)
    return {"user_id": user_id, "appointments": [_appointment_dict(a) for a in appointments]}


@router.get("/{appointment_id}")
def read_appointment(
        appointment_id: int,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment = get_appointment(db, appointment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return _appointment_dict(appointment)


@router.post("/{appointment_id}/cancel")
def cancel(
        appointment_id: int,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment = cancel_appointment(db, appointment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _appointment_dict(appointment)


@router.post("/{appointment_id}/status")
def update_status(
        appointment_id: int,
        payload: AppointmentStatusUpdate,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment = set_appointment_status(db, appointment_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _appointment_dict(appointment)


@router.post("/{appointment_id}/reschedule")
def reschedule(
        appointment_id: int,
        payload: AppointmentReschedule,
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    try:
        appointment = reschedule_appointment(
            db,
            appointment_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            now=clock(),
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _appointment_dict(appointment)
