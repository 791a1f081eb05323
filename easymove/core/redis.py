import logging
from typing import Optional
from redis.asyncio import Redis
from easymove.core.config import settings

logger = logging.getLogger(__name__)

redis: Optional[Redis] = None


async def init_redis() -> Redis:
    global redis
    try:
        redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        await redis.ping()
        logger.info("Connected to Redis")
        return redis
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        redis = None
        raise


async def close_redis():
    global redis
    if redis:
        await redis.close()
        redis = None


def set_redis(client: Optional[Redis]) -> None:
    global redis
    redis = client


def get_redis() -> Optional[Redis]:
    """Shared client, or None when Redis is unavailable.

    Callers treat None as "no cache": quotes are still priced without it.
    """
    return redis
