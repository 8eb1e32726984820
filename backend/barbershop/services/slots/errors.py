# backend/barbershop/services/slots/errors.py
"""
Scheduling errors.

Policy rejections are not errors: they come back as PolicyDecision values.
"""


class SchedulingError(Exception):
    """Base class for availability/booking failures."""


class NotFound(SchedulingError, LookupError):
    """Service (or other referenced entity) is unknown or inactive."""


class DataUnavailable(SchedulingError):
    """Appointments or barber data could not be read: availability is unknown."""

    def __init__(self, message: str = "Availability unknown"):
        super().__init__(message)
        self.message = message


class SubmissionConflict(SchedulingError):
    """
    Requested barber/slot was taken after the caller's snapshot.

    Carries the state recomputed from a fresh snapshot so the caller can
    show it instead of retrying the same payload.
    """

    message = "This time slot is no longer available. Please choose another time."

    def __init__(
        self,
        free_barber_ids: list[int] | None = None,
        fully_booked_times: list[str] | None = None,
    ):
        super().__init__(self.message)
        self.free_barber_ids = free_barber_ids or []
        self.fully_booked_times = fully_booked_times or []
