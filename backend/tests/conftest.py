"""
Shared fixtures: in-memory SQLite database, seed helpers and an API client
with the clock pinned to Monday 2026-06-01 09:00 in Lisbon.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from barbershop.database import get_db
from barbershop.dependencies import get_now
from barbershop.main import app
from barbershop.models import (
    Appointments,
    BarberTimeOff,
    Barbers,
    Base,
    ClientSubscriptions,
    Services,
    SystemSettings,
    t_barber_services,
)
from barbershop.redis_client import get_redis

LISBON = ZoneInfo("Europe/Lisbon")
TODAY = date(2026, 6, 1)
NOW = datetime(2026, 6, 1, 9, 0, tzinfo=LISBON)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_redis] = lambda: None
    app.dependency_overrides[get_now] = lambda: NOW
    # no context manager: lifespan would create the on-disk database
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── Seed helpers ─────────────────────────────────────────────────────────


def add_service(db, name="Haircut", duration=30, is_active=1) -> Services:
    service = Services(name=name, duration_minutes=duration, price=15.0, is_active=is_active)
    db.add(service)
    db.commit()
    return service


def add_barber(db, name, services=(), is_active=1) -> Barbers:
    barber = Barbers(name=name, is_active=is_active)
    db.add(barber)
    db.commit()
    for service in services:
        db.execute(t_barber_services.insert().values(barber_id=barber.id, service_id=service.id))
    db.commit()
    return barber


def add_appointment(
    db,
    barber,
    service,
    start,
    end,
    day=TODAY,
    status="confirmed",
    client_id=None,
    is_subscription_booking=0,
) -> Appointments:
    apt = Appointments(
        service_id=service.id,
        barber_id=barber.id,
        client_id=client_id,
        appointment_date=day.isoformat(),
        start_time=start,
        end_time=end,
        status=status,
        is_subscription_booking=is_subscription_booking,
    )
    db.add(apt)
    db.commit()
    return apt


def add_time_off(db, barber, start, end, type_="vacation", is_active=1) -> BarberTimeOff:
    off = BarberTimeOff(
        barber_id=barber.id,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        type=type_,
        is_active=is_active,
    )
    db.add(off)
    db.commit()
    return off


def add_subscription(db, client_id, period_end, status="active") -> ClientSubscriptions:
    sub = ClientSubscriptions(
        client_id=client_id,
        status=status,
        current_period_end=period_end.isoformat(),
    )
    db.add(sub)
    db.commit()
    return sub


def set_window_days(db, value) -> None:
    db.add(SystemSettings(setting_key="non_subscriber_booking_window_days", setting_value=value))
    db.commit()
