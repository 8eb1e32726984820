import json
from datetime import date
from unittest.mock import MagicMock

from redis.exceptions import RedisError

from barbershop.services.slots import AppointmentSnapshot, AppointmentsRedisStore, invalidate_day_cache
from barbershop.services.slots.invalidator import get_affected_dates
from barbershop.services.slots.redis_store import EMPTY_SENTINEL

DAY = date(2026, 6, 2)
KEY = "appointments:day:2026-06-02"


def test_store_day_snapshot_writes_members_and_ttl():
    redis = MagicMock()
    store = AppointmentsRedisStore(redis, ttl_seconds=30)
    apt = AppointmentSnapshot(barber_id=1, start_min=600, end_min=630, status="confirmed", id=9)

    store.store_day_snapshot(DAY, [apt])

    pipe = redis.pipeline.return_value
    pipe.delete.assert_called_once_with(KEY)
    (key, mapping), _ = pipe.zadd.call_args
    assert key == KEY
    assert [json.loads(m) for m in mapping] == [apt.to_dict()]
    assert list(mapping.values()) == [600]
    pipe.expire.assert_called_once_with(KEY, 30)
    pipe.execute.assert_called_once()


def test_store_empty_day_uses_sentinel():
    redis = MagicMock()
    AppointmentsRedisStore(redis, ttl_seconds=30).store_day_snapshot(DAY, [])

    redis.pipeline.return_value.zadd.assert_called_once_with(KEY, {EMPTY_SENTINEL: -1})


def test_get_day_snapshot_miss():
    redis = MagicMock()
    redis.zrange.return_value = []

    assert AppointmentsRedisStore(redis).get_day_snapshot(DAY) is None
    redis.zrange.assert_called_once_with(KEY, 0, -1)


def test_get_day_snapshot_skips_sentinel():
    redis = MagicMock()
    redis.zrange.return_value = [EMPTY_SENTINEL.encode()]

    assert AppointmentsRedisStore(redis).get_day_snapshot(DAY) == []


def test_get_day_snapshot_reads_members_in_one_call():
    redis = MagicMock()
    member = {"id": 3, "barber_id": 1, "start": "10:00", "end": "10:30", "status": "pending"}
    redis.zrange.return_value = [json.dumps(member).encode()]

    snapshot = AppointmentsRedisStore(redis).get_day_snapshot(DAY)

    assert snapshot == [AppointmentSnapshot(barber_id=1, start_min=600, end_min=630, status="pending", id=3)]
    redis.exists.assert_not_called()


def test_delete_specific_dates():
    redis = MagicMock()
    redis.delete.return_value = 1

    assert AppointmentsRedisStore(redis).delete_day_snapshots([DAY]) == 1
    redis.delete.assert_called_once_with(KEY)


def test_delete_all_dates():
    redis = MagicMock()
    redis.keys.return_value = [KEY.encode(), b"appointments:day:2026-06-03"]
    redis.delete.return_value = 2

    assert AppointmentsRedisStore(redis).delete_day_snapshots() == 2
    redis.keys.assert_called_once_with("appointments:day:*")


def test_delete_nothing_cached():
    redis = MagicMock()
    redis.keys.return_value = []

    assert AppointmentsRedisStore(redis).delete_day_snapshots() == 0
    redis.delete.assert_not_called()


def test_invalidate_without_redis_is_noop():
    assert invalidate_day_cache(None, [DAY]) == 0


def test_invalidate_swallows_redis_failure():
    redis = MagicMock()
    redis.delete.side_effect = RedisError("down")

    assert invalidate_day_cache(redis, [DAY]) == 0


def test_get_affected_dates():
    assert get_affected_dates(date(2026, 6, 3), date(2026, 6, 1)) == [
        date(2026, 6, 1),
        date(2026, 6, 2),
        date(2026, 6, 3),
    ]
