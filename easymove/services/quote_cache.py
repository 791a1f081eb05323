"""Finalized quotes held in Redis until checkout, keyed by quote reference"""
import json
import logging
import secrets
from typing import Optional

from easymove.core.config import settings
from easymove.core.metrics import cache_hits, cache_misses
from easymove.core.redis import get_redis
from easymove.schemas.quote import QuoteOut

logger = logging.getLogger(__name__)


def new_quote_reference() -> str:
    return f"Q{secrets.token_hex(5).upper()}"


def _cache_key(reference: str) -> str:
    return f"quote:{reference}"


async def store_quote(quote: QuoteOut) -> bool:
    redis = get_redis()
    if redis is None:
        return False
    try:
        # Decimals go in as strings so the cached copy is exact
        payload = json.dumps(quote.model_dump(), default=str)
        await redis.set(_cache_key(quote.quote_reference), payload, ex=settings.QUOTE_CACHE_TTL)
        return True
    except Exception as e:
        logger.warning(f"Cache write failed for quote {quote.quote_reference}: {e}")
        return False


async def load_quote(reference: str) -> Optional[QuoteOut]:
    redis = get_redis()
    if redis is None:
        return None
    try:
        cached = await redis.get(_cache_key(reference))
    except Exception as e:
        logger.warning(f"Cache retrieval failed for quote {reference}: {e}")
        return None
    if not cached:
        cache_misses.labels(cache="quote").inc()
        return None
    cache_hits.labels(cache="quote").inc()
    return QuoteOut.model_validate_json(cached)
