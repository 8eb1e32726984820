from datetime import datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from barbershop.database import get_db
from barbershop.dependencies import get_now
from barbershop.main import app

from .conftest import LISBON, NOW, TODAY, add_appointment, add_barber, add_service, add_subscription, set_window_days

TOMORROW = TODAY + timedelta(days=1)


def _seed(db):
    service = add_service(db, "Haircut", duration=30)
    andre = add_barber(db, "Andre", [service])
    bruno = add_barber(db, "Bruno", [service])
    return service, andre, bruno


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "redis": None}


def test_slots_day_applies_lead_time_today(client, db):
    service, _, _ = _seed(db)

    resp = client.get("/slots/day", params={"service_id": service.id, "date": TODAY.isoformat()})

    assert resp.status_code == 200
    body = resp.json()
    assert body["times"][0] == {"time": "10:00", "end_time": "10:30", "fully_booked": False}
    assert body["slot_step_minutes"] == 15
    assert body["fully_booked_times"] == []


def test_slots_day_flags_fully_booked(client, db):
    service, andre, bruno = _seed(db)
    add_appointment(db, andre, service, "16:00", "16:30", day=TOMORROW)
    add_appointment(db, bruno, service, "16:00", "17:00", day=TOMORROW)

    body = client.get("/slots/day", params={"service_id": service.id, "date": TOMORROW.isoformat()}).json()

    assert body["fully_booked_times"] == ["15:45", "16:00", "16:15"]


def test_slots_day_unknown_service(client):
    resp = client.get("/slots/day", params={"service_id": 404, "date": TOMORROW.isoformat()})
    assert resp.status_code == 404


def test_slots_day_rejects_past_dates(client, db):
    service, _, _ = _seed(db)
    resp = client.get("/slots/day", params={"service_id": service.id, "date": (TODAY - timedelta(days=1)).isoformat()})
    assert resp.status_code == 400


def test_slots_day_reports_unknown_availability_on_db_error(client):
    broken = MagicMock()
    broken.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
    app.dependency_overrides[get_db] = lambda: broken

    resp = client.get("/slots/day", params={"service_id": 1, "date": TOMORROW.isoformat()})

    assert resp.status_code == 503


def test_slot_barbers_auto_selects_single_free_barber(client, db):
    service, andre, bruno = _seed(db)
    add_appointment(db, andre, service, "10:00", "10:45", day=TOMORROW)

    body = client.get(
        "/slots/barbers",
        params={"service_id": service.id, "date": TOMORROW.isoformat(), "time": "10:30", "barber_id": andre.id},
    ).json()

    assert body["free_barbers"] == [{"id": bruno.id, "name": "Bruno"}]
    assert body["proposed_barber_id"] == bruno.id


def test_slot_barbers_keeps_current_selection(client, db):
    service, andre, bruno = _seed(db)

    body = client.get(
        "/slots/barbers",
        params={"service_id": service.id, "date": TOMORROW.isoformat(), "time": "10:45", "barber_id": andre.id},
    ).json()

    assert [b["id"] for b in body["free_barbers"]] == [andre.id, bruno.id]
    assert body["proposed_barber_id"] == andre.id


def test_slot_barbers_bad_time(client, db):
    service, _, _ = _seed(db)
    resp = client.get("/slots/barbers", params={"service_id": service.id, "date": TOMORROW.isoformat(), "time": "ten"})
    assert resp.status_code == 400


def test_slot_barbers_rejects_times_the_generator_never_offers(client, db):
    service, _, _ = _seed(db)

    for time in ("13:30", "18:45", "09:07"):
        resp = client.get(
            "/slots/barbers",
            params={"service_id": service.id, "date": TOMORROW.isoformat(), "time": time},
        )
        assert resp.status_code == 400, time


def test_booking_window_for_non_subscriber(client, db):
    set_window_days(db, "10")

    body = client.get("/slots/window").json()

    assert body == {
        "today": "2026-06-01",
        "min_date": "2026-06-01",
        "max_date": "2026-06-11",
        "booking_window_days": 10,
        "is_subscriber": False,
    }


def test_booking_window_for_subscriber_after_cutoff(client, db):
    add_subscription(db, 10, NOW + timedelta(days=30))
    app.dependency_overrides[get_now] = lambda: datetime(2026, 6, 1, 18, 30, tzinfo=LISBON)

    body = client.get("/slots/window", params={"client_id": 10}).json()

    assert body["min_date"] == "2026-06-02"
    assert body["max_date"] is None
    assert body["is_subscriber"] is True


def test_create_appointment(client, db):
    service, andre, _ = _seed(db)

    resp = client.post("/appointments/", json={
        "service_id": service.id,
        "barber_id": andre.id,
        "client_id": 10,
        "appointment_date": TOMORROW.isoformat(),
        "start_time": "15:00",
    })

    assert resp.status_code == 201
    body = resp.json()
    assert body["end_time"] == "15:30"
    assert body["status"] == "pending"
    assert body["is_subscription_booking"] is False
    assert client.get(f"/appointments/{body['id']}").status_code == 200


def test_create_appointment_policy_rejection(client, db):
    service, andre, _ = _seed(db)

    resp = client.post("/appointments/", json={
        "service_id": service.id,
        "barber_id": andre.id,
        "appointment_date": "2026-06-09",
        "start_time": "10:00",
    })

    assert resp.status_code == 422
    assert resp.json()["detail"]["reason"] == "outside_booking_window"


def test_create_appointment_conflict(client, db):
    service, andre, bruno = _seed(db)
    add_appointment(db, andre, service, "15:00", "15:30", day=TOMORROW)

    resp = client.post("/appointments/", json={
        "service_id": service.id,
        "barber_id": andre.id,
        "appointment_date": TOMORROW.isoformat(),
        "start_time": "15:00",
    })

    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert detail["free_barber_ids"] == [bruno.id]
    assert detail["message"]


def test_create_appointment_invalid_time_format(client, db):
    service, andre, _ = _seed(db)

    resp = client.post("/appointments/", json={
        "service_id": service.id,
        "barber_id": andre.id,
        "appointment_date": TOMORROW.isoformat(),
        "start_time": "quarter past ten",
    })

    assert resp.status_code == 422


def test_appointments_are_not_editable(client):
    assert client.patch("/appointments/1").status_code == 405
    assert client.delete("/appointments/1").status_code == 405
