# backend/barbershop/services/booking_submission.py
"""
Booking submission.

Re-validates a proposed booking against the policy gate and a fresh
appointment snapshot, then writes it. The barber row is locked for the
transaction and the conflict check runs again after the insert is
flushed, so an overlapping booking with a different start cannot slip
in. The partial unique index on appointments still backs up identical
starts. On any conflict the insert is rolled back and the availability
is recomputed and returned with a SubmissionConflict instead of
retrying the same payload.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import Appointments as DBAppointment
from ..schemas.appointments import AppointmentCreate
from .slots.availability import (
    load_day_snapshot,
    resolve_day_availability,
    resolve_slot_availability,
)
from .slots.calculator import generate_slots, is_on_grid
from .slots.config import BookingConfig, get_booking_config
from .slots.errors import DataUnavailable, NotFound, SubmissionConflict
from .slots.invalidator import invalidate_day_cache
from .slots.policy import validate_proposed_booking
from .slots.repository import (
    fetch_appointments,
    fetch_barbers_for_service,
    fetch_booking_window_policy,
    fetch_service,
    load_subscription_state,
    lock_barber,
)
from .slots.types import CandidateSlot, PolicyDecision, PolicyRejection

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    decision: PolicyDecision
    appointment: DBAppointment | None = None

    @property
    def accepted(self) -> bool:
        return self.decision.ok and self.appointment is not None


def submit_booking(
    db: Session,
    data: AppointmentCreate,
    now: datetime,
    redis: Redis | None = None,
    config: BookingConfig | None = None,
) -> SubmissionResult:
    """
    Validate and persist a booking.

    Returns:
        SubmissionResult; decision.reason is set when a policy rule rejected it.

    Raises:
        NotFound: service unknown or inactive
        DataUnavailable: appointments/barbers/subscription could not be read
        SubmissionConflict: barber no longer free for the slot
    """
    config = config or get_booking_config()

    service = fetch_service(db, data.service_id)
    if not service:
        raise NotFound(f"Service {data.service_id} not found")

    duration = service.duration_minutes
    slot = CandidateSlot.from_time_str(data.appointment_date, data.start_time, duration)

    # Step 1: policy gate
    subscription = load_subscription_state(db, data.client_id, now)
    window = fetch_booking_window_policy(db, config)
    decision = validate_proposed_booking(
        slot.start_datetime(config.tzinfo),
        duration,
        subscription,
        window,
        now,
        config,
    )
    if not decision.ok:
        logger.info(
            f"Booking rejected ({decision.reason.value}): client={data.client_id} "
            f"barber={data.barber_id} {slot.date} {slot.time}"
        )
        return SubmissionResult(decision)

    # Step 2: must be a slot of the business grid
    if not is_on_grid(slot.date, slot.time, duration, config):
        logger.info(f"Booking rejected (off grid): {slot.date} {slot.time} duration={duration}")
        return SubmissionResult(PolicyDecision.reject(PolicyRejection.OUTSIDE_BUSINESS_HOURS))

    # Step 3: fresh snapshot, never the cache
    lock_barber(db, data.barber_id)
    barbers = fetch_barbers_for_service(db, data.service_id, slot.date)
    appointments = load_day_snapshot(db, slot.date, redis, use_cache=False)
    free_ids = resolve_slot_availability(slot, barbers, appointments, data.service_id)
    if data.barber_id not in free_ids:
        logger.info(f"Barber {data.barber_id} not free at {slot.date} {slot.time}, free={free_ids}")
        raise SubmissionConflict(
            free_barber_ids=free_ids,
            fully_booked_times=_fully_booked_times(db, data.service_id, duration, slot, now, config),
        )

    # Step 4: write
    obj = DBAppointment(
        service_id=data.service_id,
        barber_id=data.barber_id,
        client_id=data.client_id,
        appointment_date=slot.date.isoformat(),
        start_time=slot.time,
        end_time=slot.end_time,
        status="pending",
        is_subscription_booking=1 if subscription.active else 0,
        notes=data.notes,
    )
    db.add(obj)
    try:
        db.flush()
    except IntegrityError as e:
        logger.info(f"IntegrityError on booking insert (slot likely taken): {e}")
        raise _abort_with_conflict(db, data, duration, slot, now, redis, config) from e

    # Step 5: re-check inside the write transaction; the unique index only
    # catches an identical start, not an overlap
    try:
        others = [a for a in fetch_appointments(db, slot.date) if a.id != obj.id]
    except DataUnavailable:
        db.rollback()
        raise
    if data.barber_id not in resolve_slot_availability(slot, barbers, others, data.service_id):
        logger.info(f"Overlapping booking for barber {data.barber_id} at {slot.date} {slot.time}")
        raise _abort_with_conflict(db, data, duration, slot, now, redis, config)

    try:
        db.commit()
    except IntegrityError as e:
        logger.info(f"IntegrityError on booking commit (slot likely taken): {e}")
        raise _abort_with_conflict(db, data, duration, slot, now, redis, config) from e

    db.refresh(obj)
    invalidate_day_cache(redis, [slot.date])

    logger.info(
        f"Appointment {obj.id} created: client={data.client_id} barber={data.barber_id} "
        f"service={data.service_id} {obj.appointment_date} {obj.start_time}-{obj.end_time} "
        f"subscription={bool(obj.is_subscription_booking)}"
    )
    return SubmissionResult(decision, obj)


def _fully_booked_times(
    db: Session,
    service_id: int,
    duration: int,
    slot: CandidateSlot,
    now: datetime,
    config: BookingConfig,
) -> list[str]:
    slots = generate_slots(slot.date, duration, now, config)
    barbers = fetch_barbers_for_service(db, service_id, slot.date)
    appointments = load_day_snapshot(db, slot.date, use_cache=False)
    return sorted(resolve_day_availability(slots, barbers, appointments, service_id))


def _abort_with_conflict(
    db: Session,
    data: AppointmentCreate,
    duration: int,
    slot: CandidateSlot,
    now: datetime,
    redis: Redis | None,
    config: BookingConfig,
) -> SubmissionConflict:
    """Roll back the insert, drop the cached day and recompute availability."""
    db.rollback()
    invalidate_day_cache(redis, [slot.date])
    barbers = fetch_barbers_for_service(db, data.service_id, slot.date)
    appointments = load_day_snapshot(db, slot.date, redis, use_cache=False)
    return SubmissionConflict(
        free_barber_ids=resolve_slot_availability(slot, barbers, appointments, data.service_id),
        fully_booked_times=_fully_booked_times(db, data.service_id, duration, slot, now, config),
    )
