# backend/barbershop/services/slots/availability.py
"""
Level 2: Barber availability.

Cross-references candidate slots (Level 1) with an appointment snapshot:
- which slots are fully booked (no qualified barber free)
- which barbers are free for one selected slot

The resolvers are pure: same inputs, same output. A snapshot of None means
the appointments read failed and is rejected (fail closed).
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from .calculator import generate_slots, intervals_overlap, is_on_grid
from .config import BookingConfig, get_booking_config
from .errors import DataUnavailable
from .redis_store import AppointmentsRedisStore
from .repository import fetch_appointments, fetch_barbers_for_service
from .types import AppointmentSnapshot, Barber, CandidateSlot

logger = logging.getLogger(__name__)


# ── Pure resolvers ───────────────────────────────────────────────────────


def _require_snapshot(appointments: Iterable[AppointmentSnapshot] | None) -> list[AppointmentSnapshot]:
    if appointments is None:
        raise DataUnavailable("Availability unknown: no appointment snapshot")
    return [apt for apt in appointments if apt.is_counted]


def _eligible_barbers(barbers: Sequence[Barber], service_id: int | None) -> list[Barber]:
    return [b for b in barbers if b.is_active and b.is_qualified_for(service_id)]


def busy_barber_ids(
    slot: CandidateSlot,
    appointments: Iterable[AppointmentSnapshot],
) -> set[int]:
    """Barbers with a counted appointment overlapping [slot.start, slot.end)."""
    return {
        apt.barber_id
        for apt in appointments
        if apt.is_counted and intervals_overlap(slot.start_min, slot.end_min, apt.start_min, apt.end_min)
    }


def resolve_slot_availability(
    selected_slot: CandidateSlot,
    barbers: Sequence[Barber],
    appointments: Iterable[AppointmentSnapshot] | None,
    service_id: int | None = None,
) -> list[int]:
    """
    Free barber ids for one slot, in the order barbers were given.

    Raises:
        DataUnavailable: appointments is None
    """
    counted = _require_snapshot(appointments)
    busy = busy_barber_ids(selected_slot, counted)
    return [b.id for b in _eligible_barbers(barbers, service_id) if b.id not in busy]


def resolve_day_availability(
    candidate_slots: Iterable[CandidateSlot],
    barbers: Sequence[Barber],
    appointments: Iterable[AppointmentSnapshot] | None,
    service_id: int | None = None,
) -> set[str]:
    """
    Start times ("HH:MM") of fully booked slots: zero free qualified barbers.

    Partially booked slots are not flagged.

    Raises:
        DataUnavailable: appointments is None
    """
    counted = _require_snapshot(appointments)
    eligible = _eligible_barbers(barbers, service_id)

    # Per-barber appointment lists keep the scan per slot small
    by_barber: dict[int, list[AppointmentSnapshot]] = {b.id: [] for b in eligible}
    for apt in counted:
        if apt.barber_id in by_barber:
            by_barber[apt.barber_id].append(apt)

    fully_booked: set[str] = set()
    for slot in candidate_slots:
        free = 0
        for barber in eligible:
            if not any(
                intervals_overlap(slot.start_min, slot.end_min, apt.start_min, apt.end_min)
                for apt in by_barber[barber.id]
            ):
                free += 1
        if free == 0:
            fully_booked.add(slot.time)

    return fully_booked


def select_barber(free_barber_ids: Sequence[int], current_barber_id: int | None = None) -> int | None:
    """
    Barber to propose for a slot.

    Exactly one free → that one. Current still free → keep it.
    Otherwise None: a selection never points at a busy barber.
    """
    if len(free_barber_ids) == 1:
        return free_barber_ids[0]
    if current_barber_id is not None and current_barber_id in free_barber_ids:
        return current_barber_id
    return None


# ── Snapshot loading (cache + database) ──────────────────────────────────


def load_day_snapshot(
    db: Session,
    target_date: date,
    redis: Redis | None = None,
    use_cache: bool = True,
) -> list[AppointmentSnapshot]:
    """
    Get appointments for a date, using the Redis snapshot when allowed.

    Cache failures fall through to the database; database failures raise
    DataUnavailable.
    """
    store = AppointmentsRedisStore(redis) if redis is not None else None

    if store is not None and use_cache:
        try:
            cached = store.get_day_snapshot(target_date)
        except (RedisError, ValueError, KeyError) as e:
            logger.warning(f"Snapshot cache read failed for {target_date}: {e}")
            cached = None
        if cached is not None:
            return cached

    appointments = fetch_appointments(db, target_date)

    if store is not None:
        try:
            store.store_day_snapshot(target_date, appointments)
        except RedisError as e:
            logger.warning(f"Snapshot cache write failed for {target_date}: {e}")

    return appointments


# ── Views ────────────────────────────────────────────────────────────────


def calculate_day_availability(
    db: Session,
    service_id: int,
    service_duration: int,
    target_date: date,
    now: datetime,
    redis: Redis | None = None,
    config: BookingConfig | None = None,
) -> dict:
    """
    Candidate slots for a service with fully-booked flags.

    Returns:
        Dict for SlotsDayResponse.
    """
    config = config or get_booking_config()

    slots = generate_slots(target_date, service_duration, now, config)
    barbers = fetch_barbers_for_service(db, service_id, target_date)
    appointments = load_day_snapshot(db, target_date, redis)
    fully_booked = resolve_day_availability(slots, barbers, appointments, service_id)

    return {
        "service_id": service_id,
        "date": target_date.isoformat(),
        "service_duration_min": service_duration,
        "slot_step_minutes": config.slot_step_minutes,
        "times": [
            {
                "time": slot.time,
                "end_time": slot.end_time,
                "fully_booked": slot.time in fully_booked,
            }
            for slot in slots
        ],
        "fully_booked_times": sorted(fully_booked),
    }


def calculate_slot_availability(
    db: Session,
    service_id: int,
    service_duration: int,
    target_date: date,
    time_str: str,
    redis: Redis | None = None,
    current_barber_id: int | None = None,
    use_cache: bool = True,
    config: BookingConfig | None = None,
) -> dict:
    """
    Free barbers for one selected slot plus the barber to preselect.

    A time the slot generator would not produce has no free barbers.

    Returns:
        Dict for SlotBarbersResponse.
    """
    slot = CandidateSlot.from_time_str(target_date, time_str, service_duration)
    barbers = fetch_barbers_for_service(db, service_id, target_date)
    if is_on_grid(target_date, slot.time, service_duration, config):
        appointments = load_day_snapshot(db, target_date, redis, use_cache=use_cache)
        free_ids = resolve_slot_availability(slot, barbers, appointments, service_id)
    else:
        free_ids = []

    names = {b.id: b.name for b in barbers}
    return {
        "service_id": service_id,
        "date": target_date.isoformat(),
        "time": slot.time,
        "end_time": slot.end_time,
        "free_barbers": [{"id": bid, "name": names[bid]} for bid in free_ids],
        "proposed_barber_id": select_barber(free_ids, current_barber_id),
    }
