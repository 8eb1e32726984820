# backend/barbershop/services/slots/config.py
"""
Booking configuration for slot generation and booking policy.
"""

from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo

from ...config import settings


def time_str_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    parts = time_str.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {time_str!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60) and (hour, minute) != (24, 0):
        raise ValueError(f"Invalid time string: {time_str!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the booking/slots system.

    Attributes:
        opening_time: Business opening, local wall-clock "HH:MM"
        closing_time: Business closing; services must finish by then
        break_start / break_end: Fixed lunch break, no slot may overlap it
        slot_step_minutes: Candidate start granularity (15/30/60)
        min_lead_minutes: Minimum delay between "now" and a bookable start
        default_booking_window_days: Non-subscriber window when unset
        same_day_cutoff_hour: From this local hour on, today is not offered
        timezone: IANA zone of the business wall-clock
    """
    opening_time: str = "09:00"
    closing_time: str = "19:00"
    break_start: str = "13:00"
    break_end: str = "15:00"
    slot_step_minutes: int = 15  # 15 / 30 / 60
    min_lead_minutes: int = 60
    default_booking_window_days: int = 7
    same_day_cutoff_hour: int = 18
    timezone: str = "Europe/Lisbon"

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.opening_min >= self.closing_min:
            raise ValueError(f"opening_time {self.opening_time} must be before closing_time {self.closing_time}")
        if self.break_start_min > self.break_end_min:
            raise ValueError(f"break_start {self.break_start} must not be after break_end {self.break_end}")
        if self.min_lead_minutes < 0:
            raise ValueError("min_lead_minutes must be >= 0")
        if self.default_booking_window_days < 0:
            raise ValueError("default_booking_window_days must be >= 0")

    @property
    def opening_min(self) -> int:
        return time_str_to_minutes(self.opening_time)

    @property
    def closing_min(self) -> int:
        return time_str_to_minutes(self.closing_time)

    @property
    def break_start_min(self) -> int:
        return time_str_to_minutes(self.break_start)

    @property
    def break_end_min(self) -> int:
        return time_str_to_minutes(self.break_end)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_booking_config() -> BookingConfig:
    """
    Get booking configuration (singleton).

    Time zone and default window come from Settings; business hours are fixed.
    """
    return BookingConfig(
        default_booking_window_days=settings.default_booking_window_days,
        timezone=settings.business_timezone,
    )
