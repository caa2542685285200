"""Redis connection for best-effort order notifications.

Order state never lives in Redis; PostgreSQL holds the durable record. An
unreachable Redis therefore degrades notifications but never blocks startup
or a mutation.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Shared client; the connection pool is created on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def ping_redis() -> bool:
    """Startup check. Logs and returns False instead of raising."""
    try:
        client = await get_redis()
        await client.ping()
    except (RedisError, OSError):
        logger.warning("Redis unreachable at startup; notifications will be dropped", exc_info=True)
        return False
    return True


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
