# backend/barbershop/services/slots/invalidator.py
"""
Cache invalidation for appointment snapshots.

Triggers:
✓ Appointment created → invalidate its date
✓ Submission conflict → invalidate its date before re-reading
✓ Admin request → invalidate given dates (or all)
"""

import logging
from datetime import date, timedelta

from redis import Redis
from redis.exceptions import RedisError

from .redis_store import AppointmentsRedisStore

logger = logging.getLogger(__name__)


def invalidate_day_cache(
    redis: Redis | None,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached snapshots.

    Args:
        redis: Redis client, or None when caching is disabled
        dates: Dates to invalidate, or None for every cached date

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0

    store = AppointmentsRedisStore(redis)
    try:
        deleted = store.delete_day_snapshots(dates)
    except RedisError as e:
        logger.warning(f"Snapshot cache invalidation failed: {e}")
        return 0

    logger.info(f"Invalidated {deleted} snapshot key(s) for {[d.isoformat() for d in dates] if dates else 'all dates'}")
    return deleted


def get_affected_dates(
    date_start: date,
    date_end: date,
) -> list[date]:
    """
    Get list of dates in range [date_start, date_end].

    Reversed bounds are swapped.
    """
    if date_start > date_end:
        date_start, date_end = date_end, date_start

    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)

    return dates
