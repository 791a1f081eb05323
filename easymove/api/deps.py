from functools import lru_cache

from easymove.core.config import settings
from easymove.core.pricing_config import load_pricing_config
from easymove.services.pricing import QuoteCalculator


@lru_cache(maxsize=1)
def get_calculator() -> QuoteCalculator:
    """Process-wide calculator; the pricing config is read once."""
    return QuoteCalculator(load_pricing_config(settings.PRICING_CONFIG_PATH))
