"""Quote endpoints: distance lookup, pricing and cached quote retrieval"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from easymove.api.deps import get_calculator
from easymove.core.enums import VanSize
from easymove.core.errors import QuoteValidationError
from easymove.core.metrics import quote_calculations, quote_total_amount
from easymove.core.rate_limit import check_rate_limit, client_identifier
from easymove.db.session import get_db
from easymove.models.pricing_history import PricingHistory
from easymove.schemas.quote import (
    DistanceIn, DistanceOut, PriceBreakdown, QuoteCalculateIn, QuoteOut, SimpleQuoteIn, TripRequest,
)
from easymove.services.distance import DistanceResult, DistanceService, get_distance_service
from easymove.services.pricing import QuoteCalculator, validate_trip
from easymove.services.quote_cache import load_quote, new_quote_reference, store_quote

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/distance", response_model=DistanceOut)
async def calculate_distance(
    payload: DistanceIn,
    request: Request,
    distances: DistanceService = Depends(get_distance_service),
):
    await check_rate_limit(client_identifier(request), scope="distance")
    result = await distances.calculate(payload.origin, payload.destination)
    return DistanceOut(
        distance=result.miles,
        estimated_time=result.estimated_minutes,
        origin=payload.origin,
        destination=payload.destination,
        calculation_method=result.method,
    )


async def _record_history(db: AsyncSession, quote: QuoteOut, urgency) -> None:
    try:
        db.add(PricingHistory(
            quote_reference=quote.quote_reference,
            pricing_version=quote.pricing_version,
            distance=quote.distance,
            van_size=quote.van_size,
            urgency=urgency,
            subtotal=quote.subtotal,
            total=quote.total,
        ))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(f"Could not record pricing history for {quote.quote_reference}: {e}")


@router.post("/calculate", response_model=QuoteOut)
async def calculate_quote(
    payload: QuoteCalculateIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
    calculator: QuoteCalculator = Depends(get_calculator),
    distances: DistanceService = Depends(get_distance_service),
):
    await check_rate_limit(client_identifier(request))

    data = payload.model_dump()
    distance_method = "provided"
    if payload.distance is None:
        result = await _lookup_distance(distances, payload.pickup_address, payload.delivery_address)
        data["distance"] = result.miles
        distance_method = result.method

    trip = validate_trip(data)
    breakdown = calculator.quote(trip)

    return await _publish_quote(db, breakdown, trip, distance_method)


@router.post("/simple", response_model=QuoteOut)
async def simple_quote(
    payload: SimpleQuoteIn,
    request: Request,
    db: AsyncSession = Depends(get_db),
    calculator: QuoteCalculator = Depends(get_calculator),
    distances: DistanceService = Depends(get_distance_service),
):
    await check_rate_limit(client_identifier(request))

    result = await _lookup_distance(distances, payload.pickup_address, payload.delivery_address)
    move_date = payload.move_date if payload.move_date is not None else datetime.now()
    van_size = VanSize(payload.van_size)

    trip = validate_trip({
        "pickup_address": payload.pickup_address,
        "delivery_address": payload.delivery_address,
        "distance": result.miles,
        "van_size": van_size,
        "move_date": move_date,
    })
    breakdown = calculator.simple_quote(
        trip.pickup_address, trip.delivery_address, trip.distance, trip.move_date, trip.van_size
    )
    return await _publish_quote(db, breakdown, trip, result.method)


async def _lookup_distance(distances: DistanceService, origin: str, destination: str) -> DistanceResult:
    result = await distances.calculate(origin, destination)
    if result.miles <= 0:
        raise QuoteValidationError.single(
            "distance", "Could not determine the distance between these addresses"
        )
    return result


async def _publish_quote(db: AsyncSession, breakdown: PriceBreakdown, trip: TripRequest,
                         distance_method: str) -> QuoteOut:
    quote = QuoteOut(
        **breakdown.model_dump(),
        quote_reference=new_quote_reference(),
        pickup_address=trip.pickup_address,
        delivery_address=trip.delivery_address,
        distance=trip.distance,
        van_size=trip.van_size,
        move_date=trip.move_date,
        distance_method=distance_method,
    )

    quote_calculations.labels(van_size=str(trip.van_size), urgency=str(trip.urgency)).inc()
    quote_total_amount.observe(float(quote.total))

    await store_quote(quote)
    await _record_history(db, quote, trip.urgency)
    return quote


@router.get("/{reference}", response_model=QuoteOut)
async def get_quote(reference: str):
    quote = await load_quote(reference)
    if quote is None:
        raise HTTPException(status_code=404, detail="Quote expired or not found")
    return quote
