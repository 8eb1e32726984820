# backend/barbershop/routers/appointments.py

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..models import Appointments as DBAppointments
from ..redis_client import get_redis
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentRead,
    PolicyRejectionDetail,
    SubmissionConflictDetail,
)
from ..services.booking_submission import submit_booking
from ..services.slots import DataUnavailable, NotFound, SubmissionConflict

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAppointments, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    try:
        result = submit_booking(db, data, now, redis)
    except NotFound:
        raise HTTPException(status_code=404, detail="Service not found")
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)
    except SubmissionConflict as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=SubmissionConflictDetail(
                message=e.message,
                free_barber_ids=e.free_barber_ids,
                fully_booked_times=e.fully_booked_times,
            ).model_dump(),
        )

    if not result.decision.ok:
        reason = result.decision.reason
        raise HTTPException(
            status_code=422,
            detail=PolicyRejectionDetail(reason=reason.value, message=reason.message).model_dump(),
        )

    return result.appointment


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
