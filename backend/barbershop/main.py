import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from redis import Redis
from redis.exceptions import RedisError

from .database import init_db
from .redis_client import get_redis
from .routers import appointments, slots

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.include_router(slots.router)
app.include_router(appointments.router)


@app.get("/health")
def health(redis: Redis | None = Depends(get_redis)):
    if redis is None:
        return {"status": "ok", "redis": None}
    try:
        return {"status": "ok", "redis": redis.ping()}
    except RedisError:
        return {"status": "degraded", "redis": False}
