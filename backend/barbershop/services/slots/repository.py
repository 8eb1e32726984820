# backend/barbershop/services/slots/repository.py
"""
Database reads consumed by the scheduling core.

Every read that feeds availability raises DataUnavailable on failure so the
caller never falls back to "everyone is free". Only the booking-window
setting recovers locally (default window).
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import (
    Appointments,
    BarberTimeOff,
    Barbers,
    ClientSubscriptions,
    Services,
    SystemSettings,
    t_barber_services,
)
from .calculator import business_now
from .config import BookingConfig, get_booking_config, minutes_to_time_str, time_str_to_minutes
from .errors import DataUnavailable
from .types import COUNTED_STATUSES, AppointmentSnapshot, Barber, BookingWindowPolicy, SubscriptionState

logger = logging.getLogger(__name__)

BOOKING_WINDOW_SETTING_KEY = "non_subscriber_booking_window_days"
PENDING_SUBSCRIPTION_STATUSES = ("pending", "confirmed")


# ── Appointments ─────────────────────────────────────────────────────────


def fetch_appointments(
    db: Session,
    target_date: date,
    statuses: frozenset[str] | None = None,
) -> list[AppointmentSnapshot]:
    """
    Get appointments for a date as snapshots.

    Args:
        statuses: Status filter; defaults to the counted (occupying) set.
    """
    statuses = statuses if statuses is not None else COUNTED_STATUSES
    date_str = target_date.isoformat()

    try:
        rows = (
            db.query(Appointments)
            .filter(
                Appointments.appointment_date == date_str,
                Appointments.status.in_(sorted(statuses)),
            )
            .order_by(Appointments.start_time, Appointments.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to load appointments for {date_str}: {e}")
        raise DataUnavailable("Appointments could not be loaded") from e

    snapshots = []
    for row in rows:
        try:
            snapshots.append(AppointmentSnapshot(
                barber_id=row.barber_id,
                start_min=time_str_to_minutes(row.start_time),
                end_min=time_str_to_minutes(row.end_time),
                status=row.status,
                id=row.id,
            ))
        except (ValueError, TypeError) as e:
            # An unreadable appointment could hide a busy barber
            logger.error(f"Malformed appointment {row.id} on {date_str}: {e}")
            raise DataUnavailable("Appointments could not be loaded") from e

    return snapshots


# ── Barbers / services ───────────────────────────────────────────────────


def fetch_service(db: Session, service_id: int) -> Services | None:
    """Get active service by ID."""
    try:
        return db.query(Services).filter(
            Services.id == service_id,
            Services.is_active == 1,
        ).first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load service {service_id}: {e}")
        raise DataUnavailable("Service could not be loaded") from e


def lock_barber(db: Session, barber_id: int) -> None:
    """
    Lock the barber row until the current transaction ends.

    Serializes bookings for one barber on PostgreSQL. SQLite has no row
    locks; there the write lock taken by the insert does the same job.
    """
    try:
        db.query(Barbers.id).filter(Barbers.id == barber_id).with_for_update().first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to lock barber {barber_id}: {e}")
        raise DataUnavailable("Barber could not be locked") from e


def fetch_barbers_for_service(
    db: Session,
    service_id: int,
    target_date: date | None = None,
) -> list[Barber]:
    """
    Get active barbers qualified for the service, ordered by name.

    With target_date, barbers on active time off that day are left out.
    """
    try:
        rows = (
            db.query(Barbers)
            .join(t_barber_services, Barbers.id == t_barber_services.c.barber_id)
            .filter(
                t_barber_services.c.service_id == service_id,
                Barbers.is_active == 1,
            )
            .order_by(Barbers.name, Barbers.id)
            .all()
        )

        off_ids: set[int] = set()
        if target_date is not None and rows:
            off_ids = _barbers_on_time_off(db, [b.id for b in rows], target_date)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load barbers for service {service_id}: {e}")
        raise DataUnavailable("Barbers could not be loaded") from e

    return [
        Barber(
            id=row.id,
            name=row.name,
            is_active=bool(row.is_active),
            service_ids=frozenset({service_id}),
        )
        for row in rows
        if row.id not in off_ids
    ]


def _barbers_on_time_off(db: Session, barber_ids: list[int], target_date: date) -> set[int]:
    """IDs of barbers with an active day off / vacation / block covering the date."""
    date_str = target_date.isoformat()
    rows = (
        db.query(BarberTimeOff.barber_id)
        .filter(
            BarberTimeOff.barber_id.in_(barber_ids),
            BarberTimeOff.is_active == 1,
            BarberTimeOff.start_date <= date_str,
            BarberTimeOff.end_date >= date_str,
        )
        .all()
    )
    return {barber_id for (barber_id,) in rows}


# ── Booking window setting ───────────────────────────────────────────────


def parse_booking_window(raw: str | None, default: int) -> int:
    """Parse the stored window; anything unusable falls back to default."""
    if raw is None or not str(raw).strip():
        return default
    try:
        days = int(str(raw).strip())
    except ValueError:
        logger.warning(f"Invalid {BOOKING_WINDOW_SETTING_KEY}={raw!r}, using {default}")
        return default
    if days < 0:
        logger.warning(f"Negative {BOOKING_WINDOW_SETTING_KEY}={days}, using {default}")
        return default
    return days


def fetch_booking_window_days(
    db: Session,
    config: BookingConfig | None = None,
) -> int:
    """Non-subscriber booking window in days (default when unset)."""
    config = config or get_booking_config()
    default = config.default_booking_window_days

    try:
        row = db.query(SystemSettings).filter(
            SystemSettings.setting_key == BOOKING_WINDOW_SETTING_KEY
        ).first()
    except SQLAlchemyError as e:
        logger.warning(f"Booking window setting unreadable, using {default}: {e}")
        return default

    if row is None:
        logger.debug(f"{BOOKING_WINDOW_SETTING_KEY} not set, using {default}")
        return default

    return parse_booking_window(row.setting_value, default)


def fetch_booking_window_policy(
    db: Session,
    config: BookingConfig | None = None,
) -> BookingWindowPolicy:
    return BookingWindowPolicy(max_advance_days=fetch_booking_window_days(db, config))


# ── Subscriptions ────────────────────────────────────────────────────────


def _parse_period_end(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def fetch_subscription_state(
    db: Session,
    client_id: int | None,
    now: datetime,
) -> SubscriptionState:
    """
    Active subscription = status "active" and current_period_end after now.

    Guests (no client_id) never have a subscription.
    """
    if client_id is None:
        return SubscriptionState()

    try:
        rows = db.query(ClientSubscriptions).filter(
            ClientSubscriptions.client_id == client_id,
            ClientSubscriptions.status == "active",
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load subscription for client {client_id}: {e}")
        raise DataUnavailable("Subscription could not be loaded") from e

    now = business_now(now)
    for row in rows:
        try:
            period_end = _parse_period_end(row.current_period_end)
        except (TypeError, ValueError):
            logger.warning(f"Subscription {row.id} has invalid current_period_end={row.current_period_end!r}")
            continue
        if period_end > now:
            return SubscriptionState(active=True, period_end=period_end)

    return SubscriptionState()


def fetch_pending_subscription_booking(
    db: Session,
    client_id: int | None,
    now: datetime,
) -> bool:
    """True if the client has a subscription-covered booking that has not ended yet."""
    if client_id is None:
        return False

    local_now = business_now(now)
    today_str = local_now.date().isoformat()
    now_str = minutes_to_time_str(local_now.hour * 60 + local_now.minute)

    try:
        rows = db.query(Appointments).filter(
            Appointments.client_id == client_id,
            Appointments.is_subscription_booking == 1,
            Appointments.status.in_(PENDING_SUBSCRIPTION_STATUSES),
            Appointments.appointment_date >= today_str,
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load pending bookings for client {client_id}: {e}")
        raise DataUnavailable("Pending bookings could not be loaded") from e

    return any(
        row.appointment_date > today_str or row.end_time > now_str
        for row in rows
    )


def load_subscription_state(
    db: Session,
    client_id: int | None,
    now: datetime,
) -> SubscriptionState:
    """Subscription state including the pending-booking flag (only checked for subscribers)."""
    state = fetch_subscription_state(db, client_id, now)
    if not state.active:
        return state
    return SubscriptionState(
        active=True,
        has_pending_booking=fetch_pending_subscription_booking(db, client_id, now),
        period_end=state.period_end,
    )
