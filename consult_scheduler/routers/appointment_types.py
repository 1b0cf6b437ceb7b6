# consult_scheduler/routers/appointment_types.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from consult_scheduler.db.session import get_db
from consult_scheduler.errors import NotFoundError
from consult_scheduler.models.appointment_type import AppointmentType
from consult_scheduler.schemas.appointment import AppointmentTypeCreate, AppointmentTypeUpdate
from consult_scheduler.services.appointment_type_service import (
    create_appointment_type,
    delete_appointment_type,
    get_appointment_type,
    list_appointment_types,
    update_appointment_type,
)

router = APIRouter(prefix="/appointment-types", tags=["appointment-types"])


def _type_dict(t: AppointmentType) -> Dict[str, Any]:
    return {
        "id": t.id,
        "consultant_id": t.consultant_id,
        "name": t.name,
        "duration_minutes": t.duration_minutes,
        "price": t.price,
        "description": t.description,
        "color": t.color,
    }


@router.post("")
def create_type(
        payload: AppointmentTypeCreate,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment_type = create_appointment_type(db, **payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _type_dict(appointment_type)


@router.get("")
def list_types(
        consultant_id: str,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    types = list_appointment_types(db, consultant_id)
    return {"consultant_id": consultant_id, "appointment_types": [_type_dict(t) for t in types]}


@router.get("/{type_id}")
def read_type(
        type_id: int,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment_type = get_appointment_type(db, type_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _type_dict(appointment_type)


@router.patch("/{type_id}")
def patch_type(
        type_id: int,
        payload: AppointmentTypeUpdate,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        appointment_type = update_appointment_type(
            db, type_id, payload.model_dump(exclude_unset=True)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _type_dict(appointment_type)


@router.delete("/{type_id}")
def remove_type(
        type_id: int,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        delete_appointment_type(db, type_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"id": type_id, "deleted": True}
