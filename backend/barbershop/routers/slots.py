# backend/barbershop/routers/slots.py
"""
Slots API endpoints.

GET  /slots/day     - Candidate slots for a service, fully booked ones flagged
GET  /slots/barbers - Free barbers for one selected slot
GET  /slots/window  - Bookable date range for a client
POST /slots/invalidate - Drop cached appointment snapshots (admin)
"""

from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_now
from ..redis_client import get_redis
from ..schemas.slots import (
    BookingWindowResponse,
    SlotBarbersResponse,
    SlotsDayResponse,
)
from ..services.slots import (
    DataUnavailable,
    calculate_day_availability,
    calculate_slot_availability,
    earliest_booking_date,
    get_booking_config,
    invalidate_day_cache,
    latest_booking_date,
)
from ..services.slots.calculator import is_on_grid
from ..services.slots.config import time_str_to_minutes
from ..services.slots.repository import (
    fetch_booking_window_policy,
    fetch_service,
    fetch_subscription_state,
)


router = APIRouter(prefix="/slots", tags=["slots"])


def _active_service(db: Session, service_id: int):
    try:
        service = fetch_service(db, service_id)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    service_id: int,
    target_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Get candidate time slots for a service on a specific day."""
    if target_date < now.date():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")

    service = _active_service(db, service_id)

    try:
        result = calculate_day_availability(
            db=db,
            service_id=service_id,
            service_duration=service.duration_minutes,
            target_date=target_date,
            now=now,
            redis=redis,
        )
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    return SlotsDayResponse(**result)


@router.get("/barbers", response_model=SlotBarbersResponse)
def get_slot_barbers(
    service_id: int,
    time: str,
    target_date: date = Query(..., alias="date"),
    barber_id: int | None = None,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    now: datetime = Depends(get_now),
):
    """Get barbers free for the selected slot (barber_id = current selection)."""
    if target_date < now.date():
        raise HTTPException(status_code=400, detail="Date cannot be in the past")
    try:
        time_str_to_minutes(time)
    except ValueError:
        raise HTTPException(status_code=400, detail="time must be HH:MM")

    service = _active_service(db, service_id)
    if not is_on_grid(target_date, time, service.duration_minutes):
        raise HTTPException(status_code=400, detail="time is not a bookable slot for this service")

    try:
        result = calculate_slot_availability(
            db=db,
            service_id=service_id,
            service_duration=service.duration_minutes,
            target_date=target_date,
            time_str=time,
            redis=redis,
            current_barber_id=barber_id,
        )
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    return SlotBarbersResponse(**result)


@router.get("/window", response_model=BookingWindowResponse)
def get_booking_window(
    client_id: int | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Get the bookable date range (subscribers have no upper bound)."""
    config = get_booking_config()

    try:
        subscription = fetch_subscription_state(db, client_id, now)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)
    policy = fetch_booking_window_policy(db, config)

    return BookingWindowResponse(
        today=now.date(),
        min_date=earliest_booking_date(now, config),
        max_date=latest_booking_date(now, policy, subscription.active, config),
        booking_window_days=policy.max_advance_days,
        is_subscriber=subscription.active,
    )


@router.post("/invalidate")
def invalidate_slots_cache(
    dates: list[date] | None = None,
    redis: Redis | None = Depends(get_redis),
):
    """Manually invalidate appointment snapshot cache (admin endpoint)."""
    deleted = invalidate_day_cache(redis, dates)

    return {
        "deleted_keys": deleted,
        "dates": [d.isoformat() for d in dates] if dates else "all",
    }
