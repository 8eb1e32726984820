# backend/barbershop/services/slots/__init__.py
"""
Slots and availability module.

Level 1: Candidate slots for a service (pure, calculator.py)
Level 2: Barber availability against an appointment snapshot (availability.py)
Policy: Lead time / booking window / pending subscription gate (policy.py)
"""

from .config import BookingConfig, get_booking_config
from .calculator import generate_slots, earliest_booking_date, business_now
from .availability import (
    resolve_day_availability,
    resolve_slot_availability,
    select_barber,
    calculate_day_availability,
    calculate_slot_availability,
)
from .policy import validate_proposed_booking, latest_booking_date
from .redis_store import AppointmentsRedisStore
from .invalidator import invalidate_day_cache
from .errors import DataUnavailable, NotFound, SubmissionConflict
from .types import (
    AppointmentSnapshot,
    Barber,
    BookingWindowPolicy,
    CandidateSlot,
    PolicyDecision,
    PolicyRejection,
    SubscriptionState,
)

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "generate_slots",
    "earliest_booking_date",
    "business_now",
    "resolve_day_availability",
    "resolve_slot_availability",
    "select_barber",
    "calculate_day_availability",
    "calculate_slot_availability",
    "validate_proposed_booking",
    "latest_booking_date",
    "AppointmentsRedisStore",
    "invalidate_day_cache",
    "DataUnavailable",
    "NotFound",
    "SubmissionConflict",
    "AppointmentSnapshot",
    "Barber",
    "BookingWindowPolicy",
    "CandidateSlot",
    "PolicyDecision",
    "PolicyRejection",
    "SubscriptionState",
]
