"""Road distance between two addresses.

``GoogleMapsDistanceService`` asks the Directions API and falls back to
``EstimatedDistanceService`` on any failure. The estimate is deterministic:
a table of known UK city pairs, then a great-circle distance between known
city centres stretched by a road winding factor.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import httpx

from easymove.core.config import settings
from easymove.core.metrics import distance_lookups

logger = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
MILES_PER_METRE = 0.000621371
EARTH_RADIUS_MILES = 3958.8
UK_ROAD_ADJUSTMENT = 1.1
DEFAULT_MILES = 50.0
DEFAULT_MINUTES = 120


@dataclass(frozen=True)
class DistanceResult:
    miles: float
    estimated_minutes: int
    method: str
    route: Optional[str] = None


class DistanceService(Protocol):
    async def calculate(self, origin: str, destination: str) -> DistanceResult:
        ...


CITY_PAIR_MILES = {
    frozenset({"london", "manchester"}): 200,
    frozenset({"london", "birmingham"}): 126,
    frozenset({"manchester", "liverpool"}): 35,
    frozenset({"london", "bristol"}): 118,
    frozenset({"london", "leeds"}): 196,
    frozenset({"london", "newcastle"}): 283,
    frozenset({"london", "portsmouth"}): 75,
    frozenset({"portsmouth", "southampton"}): 20,
    frozenset({"portsmouth", "brighton"}): 49,
    frozenset({"portsmouth", "newcastle"}): 330,
}

CITY_COORDINATES = {
    "london": (51.507351, -0.127758),
    "manchester": (53.483959, -2.244644),
    "birmingham": (52.486243, -1.890401),
    "leeds": (53.801277, -1.548567),
    "glasgow": (55.860916, -4.251433),
    "edinburgh": (55.953251, -3.188267),
    "liverpool": (53.400307, -2.991225),
    "bristol": (51.454514, -2.58791),
    "newcastle": (54.978252, -1.61778),
    "sheffield": (53.381129, -1.470085),
    "belfast": (54.597286, -5.93012),
    "cardiff": (51.481583, -3.17909),
    "nottingham": (52.954783, -1.158109),
    "cambridge": (52.205338, 0.121817),
    "oxford": (51.752022, -1.257677),
    "brighton": (50.827778, -0.152778),
    "portsmouth": (50.805832, -1.087222),
    "leicester": (52.636879, -1.139759),
    "coventry": (52.406822, -1.519693),
    "southampton": (50.909698, -1.404351),
    "reading": (51.454265, -0.97813),
    "york": (53.958332, -1.080278),
    "milton keynes": (52.040623, -0.759417),
    "exeter": (50.725556, -3.526944),
    "plymouth": (50.376289, -4.143841),
    "aberdeen": (57.149717, -2.094278),
}


def find_city(address: str) -> Optional[str]:
    lowered = address.lower()
    # longest names first so "milton keynes" wins over any shorter substring
    for city in sorted(CITY_COORDINATES, key=len, reverse=True):
        if city in lowered:
            return city
    return None


def haversine_miles(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def road_winding_factor(straight_miles: float) -> float:
    if straight_miles < 10:
        return 1.6
    if straight_miles < 30:
        return 1.5
    if straight_miles < 100:
        return 1.4
    return 1.3


def average_speed_mph(miles: float) -> int:
    if miles < 10:
        return 18
    if miles < 30:
        return 25
    if miles < 100:
        return 35
    return 45


def loading_minutes(miles: float) -> int:
    if miles < 20:
        return 30
    if miles < 50:
        return 45
    if miles < 100:
        return 60
    return 75


def total_minutes(miles: float, driving_minutes: Optional[int] = None, break_after_miles: float = 100) -> int:
    """Door-to-door time: driving, loading and a 15 minute break per two hours on long runs."""
    if driving_minutes is None:
        driving_minutes = round(miles / average_speed_mph(miles) * 60)
    breaks = (driving_minutes // 120) * 15 if miles > break_after_miles else 0
    return driving_minutes + loading_minutes(miles) + breaks


class EstimatedDistanceService:
    async def calculate(self, origin: str, destination: str) -> DistanceResult:
        return self.estimate(origin, destination)

    def estimate(self, origin: str, destination: str) -> DistanceResult:
        origin_city = find_city(origin)
        destination_city = find_city(destination)

        if origin_city and destination_city:
            known = CITY_PAIR_MILES.get(frozenset({origin_city, destination_city}))
            if known is not None and origin_city != destination_city:
                miles = float(known)
                method = "city_pair"
            else:
                straight = haversine_miles(CITY_COORDINATES[origin_city], CITY_COORDINATES[destination_city])
                miles = round(straight * road_winding_factor(straight) * UK_ROAD_ADJUSTMENT, 1)
                method = "estimate"
            distance_lookups.labels(method=method).inc()
            return DistanceResult(miles=miles, estimated_minutes=total_minutes(miles), method=method)

        logger.info(f"No known city in '{origin}' or '{destination}', using default distance")
        distance_lookups.labels(method="default").inc()
        return DistanceResult(miles=DEFAULT_MILES, estimated_minutes=DEFAULT_MINUTES, method="default")


class GoogleMapsDistanceService:
    def __init__(self, api_key: str, fallback: Optional[EstimatedDistanceService] = None,
                 timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.fallback = fallback or EstimatedDistanceService()
        self.timeout = timeout
        self.transport = transport

    async def calculate(self, origin: str, destination: str) -> DistanceResult:
        try:
            return await self._directions(origin, destination)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Google Maps lookup failed, using estimate: {e}")
            return self.fallback.estimate(origin, destination)

    async def _directions(self, origin: str, destination: str) -> DistanceResult:
        params = {
            "origin": origin,
            "destination": destination,
            "mode": "driving",
            "region": "uk",
            "key": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(DIRECTIONS_URL, params=params)
            response.raise_for_status()
            data = response.json()

        if data.get("status") != "OK" or not data.get("routes"):
            raise ValueError(f"Directions API status {data.get('status')}: {data.get('error_message', 'no route')}")

        route = data["routes"][0]
        metres = sum(leg["distance"]["value"] for leg in route["legs"])
        seconds = sum(leg["duration"]["value"] for leg in route["legs"])

        miles = round(metres * MILES_PER_METRE, 1)
        driving_minutes = math.ceil(seconds / 60)
        distance_lookups.labels(method="google_maps").inc()
        return DistanceResult(
            miles=miles,
            estimated_minutes=total_minutes(miles, driving_minutes, break_after_miles=50),
            method="google_maps",
            route=route.get("summary") or None,
        )


def get_distance_service() -> DistanceService:
    if settings.GOOGLE_MAPS_API_KEY:
        return GoogleMapsDistanceService(settings.GOOGLE_MAPS_API_KEY, timeout=settings.DISTANCE_TIMEOUT)
    return EstimatedDistanceService()
