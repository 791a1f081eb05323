import logging

from fastapi import HTTPException, Request

from easymove.core.config import settings
from easymove.core.metrics import rate_limit_exceeded
from easymove.core.redis import get_redis

logger = logging.getLogger(__name__)


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def check_rate_limit(identifier: str, scope: str = "quotes"):
    redis = get_redis()
    if redis is None:
        return
    key = f"rl:{scope}:{identifier}"
    current = await redis.get(key)
    if current is None:
        await redis.set(key, "1", ex=settings.RATE_LIMIT_WINDOW)
        return
    count = int(current)
    if count >= settings.RATE_LIMIT:
        rate_limit_exceeded.labels(scope=scope).inc()
        logger.warning(f"Rate limit exceeded for {identifier} on {scope}")
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    await redis.incr(key)
