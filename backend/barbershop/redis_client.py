# backend/barbershop/redis_client.py
"""
Shared Redis client for the appointment snapshot cache.

REDIS_URL is optional: without it the cache is disabled and every
availability read goes straight to the database.
"""

from redis import Redis

from .config import settings

redis_client: Redis | None = (
    Redis.from_url(settings.redis_url, socket_timeout=2.0)
    if settings.redis_url
    else None
)


# FastAPI dependency
def get_redis() -> Redis | None:
    return redis_client
