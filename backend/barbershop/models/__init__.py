from .tables import (
    Appointments,
    BarberTimeOff,
    Barbers,
    Base,
    ClientSubscriptions,
    Services,
    SystemSettings,
    t_barber_services,
)

__all__ = [
    "Appointments",
    "BarberTimeOff",
    "Barbers",
    "Base",
    "ClientSubscriptions",
    "Services",
    "SystemSettings",
    "t_barber_services",
]
