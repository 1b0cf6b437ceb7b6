# consult_scheduler/routers/availability.py
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from consult_scheduler.db.session import get_db
from consult_scheduler.errors import NotFoundError
from consult_scheduler.scheduling.clock import Clock, get_clock
from consult_scheduler.schemas.availability import AvailabilityPayload
from consult_scheduler.services.availability_service import (
    get_availability_profile,
    upsert_availability_profile,
)
from consult_scheduler.services.slot_service import get_available_time_slots

router = APIRouter(prefix="/consultants", tags=["availability"])


@router.put("/{consultant_id}/availability")
def put_availability(
        consultant_id: str,
        payload: AvailabilityPayload,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Create or replace a consultant's weekly hours, exceptions and booking policy.
    """
    try:
        profile = upsert_availability_profile(
            db,
            consultant_id,
            payload.model_dump(exclude_none=True),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return profile.to_record()


@router.get("/{consultant_id}/availability")
def get_availability(
        consultant_id: str,
        db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        profile = get_availability_profile(db, consultant_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return profile.to_record()


@router.get("/{consultant_id}/slots")
def get_slots(
        consultant_id: str,
        date: date,
        slot_length_minutes: Optional[int] = Query(default=None, gt=0),
        db: Session = Depends(get_db),
        clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    """
    Bookable slots for one date.

    Slots taken by a scheduled appointment (or its buffer) come back with
    available=false. The list is a snapshot; booking does not re-check it.
    """
    try:
        slots = get_available_time_slots(
            db,
            consultant_id,
            date,
            now=clock(),
            slot_length_minutes=slot_length_minutes,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "consultant_id": consultant_id,
        "date": date.isoformat(),
        "slots": [s.to_dict() for s in slots],
    }
