"""Redis client configuration."""

from redis.asyncio import Redis as AsyncRedis
from redlock import Redlock

from app.core.config import settings

REDIS_URL = settings.redis_url

# Readiness ping client (connections are opened lazily)
async_redis = AsyncRedis.from_url(REDIS_URL, decode_responses=True)


def create_redlock() -> Redlock:
    """Build the Redlock instance; REDIS_HOSTS may list several instances."""
    redis_hosts = settings.REDIS_HOSTS or settings.REDIS_HOST

    if "," in redis_hosts:  # multi-instance mode
        hosts = redis_hosts.split(",")
        servers = [
            {"host": host.strip(), "port": settings.REDIS_PORT, "db": settings.REDIS_DB}
            for host in hosts
        ]
    else:  # single instance
        servers = [
            {"host": redis_hosts.strip(), "port": settings.REDIS_PORT, "db": settings.REDIS_DB}
        ]

    return Redlock(
        servers,
        retry_count=settings.STOCK_LOCK_RETRY_COUNT,
        retry_delay=settings.STOCK_LOCK_RETRY_DELAY,
    )


redlock = create_redlock()

__all__ = [
    "async_redis",
    "redlock",
    "create_redlock",
    "REDIS_URL",
]
