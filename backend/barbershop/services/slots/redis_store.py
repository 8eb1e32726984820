# backend/barbershop/services/slots/redis_store.py
"""
Redis cache for per-day appointment snapshots using Sorted Sets.

Key format: appointments:day:{date}
Value: Sorted Set where member = JSON appointment
       ({"id", "barber_id", "start", "end", "status"}), score = start minute.

Sentinel: "__empty__" with score=-1 marks "fetched, zero appointments".
Keys expire after snapshot_ttl_seconds; writes invalidate the date.
"""

import json
from datetime import date

from redis import Redis

from ...config import settings
from .types import AppointmentSnapshot


EMPTY_SENTINEL = "__empty__"


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


class AppointmentsRedisStore:
    """Redis storage wrapper for appointment snapshots."""

    KEY_PREFIX = "appointments:day"

    def __init__(self, redis: Redis, ttl_seconds: int | None = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.snapshot_ttl_seconds

    def _key(self, dt: date) -> str:
        return f"{self.KEY_PREFIX}:{dt.isoformat()}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_day_snapshot(
        self,
        dt: date,
        appointments: list[AppointmentSnapshot],
    ) -> None:
        """
        Store the appointment snapshot for a day.

        Empty list → sentinel is stored.
        """
        key = self._key(dt)
        pipe = self.redis.pipeline()

        # Remove old data
        pipe.delete(key)

        if appointments:
            mapping = {
                json.dumps(apt.to_dict(), sort_keys=True): apt.start_min
                for apt in appointments
            }
            pipe.zadd(key, mapping)
        else:
            pipe.zadd(key, {EMPTY_SENTINEL: -1})

        pipe.expire(key, self.ttl_seconds)
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_day_snapshot(self, dt: date) -> list[AppointmentSnapshot] | None:
        """
        Get cached snapshot for a day.

        Returns:
            Appointments ordered by start, or None on cache miss.
            Only the sentinel means "zero appointments"; a key that comes
            back with no members (expired or never written) is a miss.
        """
        members = self.redis.zrange(self._key(dt), 0, -1)
        if not members:
            return None

        return [
            AppointmentSnapshot.from_dict(json.loads(m))
            for m in map(_decode, members)
            if m != EMPTY_SENTINEL
        ]

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_day_snapshots(self, dates: list[date] | None = None) -> int:
        """
        Delete cached snapshots.

        Args:
            dates: Specific dates, or None to delete every cached day.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(dt) for dt in dates]
        else:
            keys = self.redis.keys(f"{self.KEY_PREFIX}:*")

        if not keys:
            return 0

        return self.redis.delete(*keys)
