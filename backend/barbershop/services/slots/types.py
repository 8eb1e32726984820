# backend/barbershop/services/slots/types.py
"""
Value types shared by the slot generator, availability resolver and policy guard.

All times inside one day are minutes since local midnight; the date is carried
separately so overlap checks stay plain integer comparisons.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from .config import minutes_to_time_str, time_str_to_minutes


# Statuses that occupy a barber's schedule. Only "cancelled" frees a slot.
COUNTED_STATUSES: frozenset[str] = frozenset({"pending", "confirmed", "completed"})


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """A bookable start time on a date; end is implied by the service duration."""
    date: date
    start_min: int
    duration_min: int

    @property
    def end_min(self) -> int:
        return self.start_min + self.duration_min

    @property
    def time(self) -> str:
        return minutes_to_time_str(self.start_min)

    @property
    def end_time(self) -> str:
        return minutes_to_time_str(self.end_min)

    def start_datetime(self, tz: ZoneInfo) -> datetime:
        midnight = datetime.combine(self.date, datetime.min.time(), tzinfo=tz)
        return midnight + timedelta(minutes=self.start_min)

    @classmethod
    def from_time_str(cls, target_date: date, time_str: str, duration_min: int) -> "CandidateSlot":
        return cls(target_date, time_str_to_minutes(time_str), duration_min)


@dataclass(frozen=True)
class Barber:
    """Schedulable resource. service_ids empty means "qualification already filtered"."""
    id: int
    name: str
    is_active: bool = True
    service_ids: frozenset[int] = field(default_factory=frozenset)

    def is_qualified_for(self, service_id: int | None) -> bool:
        if service_id is None or not self.service_ids:
            return True
        return service_id in self.service_ids


@dataclass(frozen=True)
class AppointmentSnapshot:
    """Read-only view of an existing appointment on the snapshot date."""
    barber_id: int
    start_min: int
    end_min: int
    status: str
    id: int | None = None

    @property
    def is_counted(self) -> bool:
        return self.status in COUNTED_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barber_id": self.barber_id,
            "start": minutes_to_time_str(self.start_min),
            "end": minutes_to_time_str(self.end_min),
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppointmentSnapshot":
        return cls(
            barber_id=int(data["barber_id"]),
            start_min=time_str_to_minutes(data["start"]),
            end_min=time_str_to_minutes(data["end"]),
            status=data["status"],
            id=data.get("id"),
        )


@dataclass(frozen=True)
class BookingWindowPolicy:
    """Non-subscriber advance-booking limit; subscribers are unlimited."""
    max_advance_days: int = 7


@dataclass(frozen=True)
class SubscriptionState:
    active: bool = False
    has_pending_booking: bool = False
    period_end: datetime | None = None


class PolicyRejection(str, Enum):
    PENDING_SUBSCRIPTION_BOOKING = "pending_subscription_booking"
    INSUFFICIENT_LEAD_TIME = "insufficient_lead_time"
    OUTSIDE_BOOKING_WINDOW = "outside_booking_window"
    OUTSIDE_BUSINESS_HOURS = "outside_business_hours"

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self]


REJECTION_MESSAGES = {
    PolicyRejection.PENDING_SUBSCRIPTION_BOOKING: (
        "You already have a subscription booking awaiting confirmation."
    ),
    PolicyRejection.INSUFFICIENT_LEAD_TIME: (
        "Bookings must be made at least 1 hour in advance."
    ),
    PolicyRejection.OUTSIDE_BOOKING_WINDOW: (
        "Non-subscribers can only book a limited number of days in advance."
    ),
    PolicyRejection.OUTSIDE_BUSINESS_HOURS: (
        "The requested time is not a bookable slot."
    ),
}


@dataclass(frozen=True)
class PolicyDecision:
    reason: PolicyRejection | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def accept(cls) -> "PolicyDecision":
        return cls()

    @classmethod
    def reject(cls, reason: PolicyRejection) -> "PolicyDecision":
        return cls(reason)
