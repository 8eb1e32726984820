# backend/barbershop/schemas/appointments.py

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..services.slots.config import minutes_to_time_str, time_str_to_minutes


class AppointmentCreate(BaseModel):
    service_id: int
    barber_id: int
    client_id: Optional[int] = None  # None = guest booking

    appointment_date: date
    start_time: str = Field(description="HH:MM, business-local")

    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, value: str) -> str:
        return minutes_to_time_str(time_str_to_minutes(value))


class AppointmentRead(BaseModel):
    id: int

    service_id: int
    barber_id: int
    client_id: Optional[int] = None

    appointment_date: date
    start_time: str
    end_time: str

    status: str
    is_subscription_booking: bool
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class PolicyRejectionDetail(BaseModel):
    reason: str
    message: str


class SubmissionConflictDetail(BaseModel):
    message: str
    free_barber_ids: list[int] = []
    fully_booked_times: list[str] = []
