# backend/barbershop/services/slots/policy.py
"""
Booking policy gate, evaluated before a booking is accepted.

Checks run in a fixed order and the first failure wins:
1. subscriber with a pending subscription booking
2. start earlier than now + min lead time
3. non-subscriber beyond the booking window (boundary day allowed)

Re-run at submission time: slots chosen earlier can expire while the
client fills in the form.
"""

from datetime import date, datetime, timedelta

from .calculator import business_now
from .config import BookingConfig, get_booking_config
from .types import BookingWindowPolicy, PolicyDecision, PolicyRejection, SubscriptionState


def validate_proposed_booking(
    proposed_start: datetime,
    service_duration: int,
    subscription_state: SubscriptionState,
    window_policy: BookingWindowPolicy,
    now: datetime,
    config: BookingConfig | None = None,
) -> PolicyDecision:
    """
    Validate a proposed booking start.

    Naive datetimes are interpreted on the business wall-clock.
    """
    if service_duration <= 0:
        raise ValueError(f"service_duration must be > 0, got {service_duration}")

    config = config or get_booking_config()
    local_now = business_now(now, config)
    local_start = business_now(proposed_start, config)

    if subscription_state.active and subscription_state.has_pending_booking:
        return PolicyDecision.reject(PolicyRejection.PENDING_SUBSCRIPTION_BOOKING)

    if local_start < local_now + timedelta(minutes=config.min_lead_minutes):
        return PolicyDecision.reject(PolicyRejection.INSUFFICIENT_LEAD_TIME)

    latest = latest_booking_date(local_now, window_policy, subscription_state.active, config)
    if latest is not None and local_start.date() > latest:
        return PolicyDecision.reject(PolicyRejection.OUTSIDE_BOOKING_WINDOW)

    return PolicyDecision.accept()


def latest_booking_date(
    now: datetime,
    window_policy: BookingWindowPolicy,
    is_subscriber: bool,
    config: BookingConfig | None = None,
) -> date | None:
    """Last bookable business-local date; None = unlimited (subscribers)."""
    if is_subscriber:
        return None
    local_now = business_now(now, config)
    return local_now.date() + timedelta(days=window_policy.max_advance_days)
