# backend/barbershop/services/slots/calculator.py
"""
Level 1: Candidate slot generation.

Produces the ordered list of start times for a service on a business day:

✓ business hours (service must finish by closing)
✓ fixed lunch break (any overlap excludes the slot)
✓ same-day minimum lead time ("now" + min_lead_minutes)

Does NOT contain:
✗ Appointments (checked at Level 2, availability.py)
✗ Barbers (checked at Level 2)
✗ Booking window / subscription rules (policy.py)
"""

from datetime import date, datetime, timedelta

from .config import BookingConfig, get_booking_config
from .types import CandidateSlot


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [start, end) overlap: back-to-back intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def business_now(
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> datetime:
    """
    Current time on the business wall-clock.

    Naive datetimes are taken as already being business-local.
    """
    config = config or get_booking_config()
    tz = config.tzinfo
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def generate_slots(
    target_date: date,
    service_duration: int,
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> list[CandidateSlot]:
    """
    Generate candidate slots for a service on target_date.

    Args:
        target_date: Business-local date
        service_duration: Service length in minutes (> 0)
        now: Current instant; None skips the same-day lead-time filter
        config: Booking configuration

    Returns:
        Slots ascending by start. Empty list = nothing fits (not an error).
    """
    if service_duration <= 0:
        raise ValueError(f"service_duration must be > 0, got {service_duration}")

    config = config or get_booking_config()

    # Same-day cutoff in seconds since local midnight
    lead_cutoff_sec: int | None = None
    if now is not None:
        local_now = business_now(now, config)
        if local_now.date() == target_date:
            since_midnight = local_now - local_now.replace(hour=0, minute=0, second=0, microsecond=0)
            lead_cutoff_sec = int(since_midnight.total_seconds()) + config.min_lead_minutes * 60

    opening = config.opening_min
    closing = config.closing_min
    break_start = config.break_start_min
    break_end = config.break_end_min
    has_break = break_start < break_end
    step = config.slot_step_minutes

    slots: list[CandidateSlot] = []
    t = opening
    while t < closing:
        end = t + service_duration

        if end > closing:
            break  # later starts end even later

        if has_break and intervals_overlap(t, end, break_start, break_end):
            t += step
            continue

        if lead_cutoff_sec is not None and t * 60 < lead_cutoff_sec:
            t += step
            continue

        slots.append(CandidateSlot(target_date, t, service_duration))
        t += step

    return slots


def is_on_grid(
    target_date: date,
    time_str: str,
    service_duration: int,
    config: BookingConfig | None = None,
) -> bool:
    """True if time_str is a candidate start for the service, ignoring lead time."""
    requested = CandidateSlot.from_time_str(target_date, time_str, service_duration)
    return requested in generate_slots(target_date, service_duration, None, config)


def earliest_booking_date(
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> date:
    """Today, or tomorrow once the business-local hour reaches the same-day cutoff."""
    config = config or get_booking_config()
    local_now = business_now(now, config)
    if local_now.hour >= config.same_day_cutoff_hour:
        return local_now.date() + timedelta(days=1)
    return local_now.date()
