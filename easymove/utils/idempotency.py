"""Replay protection for checkout, keyed by the client's Idempotency-Key header"""
import json
import logging
from easymove.core.redis import get_redis
from easymove.core.config import settings

logger = logging.getLogger(__name__)


async def get_idempotent(key: str):
    if not key:
        return None
    redis = get_redis()
    if redis is None:
        return None
    v = await redis.get(f"idemp:{key}")
    return json.loads(v) if v else None


async def set_idempotent(key: str, value: dict):
    if not key:
        return
    redis = get_redis()
    if redis is None:
        logger.warning("Redis unavailable, idempotency key not stored")
        return
    await redis.set(f"idemp:{key}", json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
