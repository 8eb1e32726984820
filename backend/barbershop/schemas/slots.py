# backend/barbershop/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from pydantic import BaseModel, Field


class SlotTime(BaseModel):
    """A candidate start time for the selected service."""
    time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    fully_booked: bool = False

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Candidate slots for a service on a day (fully booked ones flagged)."""
    service_id: int
    date: date
    service_duration_min: int
    slot_step_minutes: int = Field(description="Grid step in minutes (15/30/60)")
    times: list[SlotTime]
    fully_booked_times: list[str] = []

    model_config = {"from_attributes": True}


class BarberShort(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class SlotBarbersResponse(BaseModel):
    """Free barbers for one selected slot."""
    service_id: int
    date: date
    time: str
    end_time: str
    free_barbers: list[BarberShort]
    proposed_barber_id: int | None = Field(
        default=None,
        description="Preselected barber: the only free one, or the current choice if still free",
    )

    model_config = {"from_attributes": True}


class BookingWindowResponse(BaseModel):
    """Bookable date range for a client."""
    today: date
    min_date: date
    max_date: date | None = Field(default=None, description="None = unlimited (subscribers)")
    booking_window_days: int
    is_subscriber: bool

    model_config = {"from_attributes": True}
