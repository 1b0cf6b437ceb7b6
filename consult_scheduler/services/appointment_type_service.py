# consult_scheduler/services/appointment_type_service.py
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from consult_scheduler.errors import NotFoundError, ValidationError
from consult_scheduler.models.appointment_type import AppointmentType

_UPDATABLE_FIELDS = ("name", "duration_minutes", "price", "description", "color")


def _validate(duration_minutes: Optional[int], price: Optional[float]) -> None:
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValidationError("duration_minutes must be positive")
    if price is not None and price < 0:
        raise ValidationError("price must not be negative")


def create_appointment_type(
    db: Session,
    *,
    consultant_id: str,
    name: str,
    duration_minutes: int,
    price: float = 0.0,
    description: Optional[str] = None,
    color: Optional[str] = None,
) -> AppointmentType:
    _validate(duration_minutes, price)

    appointment_type = AppointmentType(
        consultant_id=consultant_id,
        name=name,
        duration_minutes=duration_minutes,
        price=price,
        description=description,
        color=color,
    )
    db.add(appointment_type)
    db.commit()
    db.refresh(appointment_type)
    return appointment_type


def get_appointment_type(db: Session, type_id: int) -> AppointmentType:
    appointment_type = db.query(AppointmentType).filter_by(id=type_id).first()
    if appointment_type is None:
        raise NotFoundError(f"Appointment type {type_id} not found")
    return appointment_type


def list_appointment_types(db: Session, consultant_id: str) -> List[AppointmentType]:
    return (
        db.query(AppointmentType)
        .filter(AppointmentType.consultant_id == consultant_id)
        .order_by(AppointmentType.id.asc())
        .all()
    )


def update_appointment_type(db: Session, type_id: int, changes: Dict[str, Any]) -> AppointmentType:
    appointment_type = get_appointment_type(db, type_id)
    _validate(changes.get("duration_minutes"), changes.get("price"))

    for key, value in changes.items():
        if key in _UPDATABLE_FIELDS:
            setattr(appointment_type, key, value)

    db.commit()
    db.refresh(appointment_type)
    return appointment_type


def delete_appointment_type(db: Session, type_id: int) -> None:
    appointment_type = get_appointment_type(db, type_id)
    db.delete(appointment_type)
    db.commit()
