# backend/barbershop/dependencies.py
"""
Shared FastAPI dependencies.

The clock is a dependency so tests can pin "now".
"""

from datetime import datetime

from .services.slots.calculator import business_now


def get_now() -> datetime:
    """Current business-local time."""
    return business_now()
