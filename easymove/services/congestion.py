"""Congestion charge zone detection.

This is an address-text heuristic, not a geofence. The calculator only
depends on the ``CongestionZonePredicate`` signature, so a geocoded check can
replace ``is_in_congestion_zone`` without touching pricing.
"""
import re
from typing import Callable, Iterable

CongestionZonePredicate = Callable[[str], bool]

CENTRAL_LONDON_DISTRICTS = ("EC1", "EC2", "EC3", "EC4", "WC1", "WC2", "SW1", "W1", "SE1")


def _district_pattern(districts: Iterable[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(d) for d in districts)
    # W1 matches W1A/W1T but not W10
    return re.compile(rf"\b(?:{alternatives})[A-Z]?\b", re.IGNORECASE)


_CENTRAL_LONDON = _district_pattern(CENTRAL_LONDON_DISTRICTS)


def is_in_congestion_zone(address: str) -> bool:
    if not address:
        return False
    return "london" in address.lower() or bool(_CENTRAL_LONDON.search(address))


def postcode_zone(districts: Iterable[str]) -> CongestionZonePredicate:
    """Build a predicate matching only the given postcode districts."""
    pattern = _district_pattern(districts)

    def _matches(address: str) -> bool:
        return bool(address) and bool(pattern.search(address))

    return _matches
