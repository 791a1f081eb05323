"""Quote calculator.

Every function is pure: the pricing config, holiday calendar and congestion
zone predicate are passed in, never read from module state. Money is Decimal.

Sub-calculations return money rounded to pennies. With ``exact=True`` they
return the unrounded term instead; ``build_breakdown`` sums exact terms and
rounds each output field once, so rounding never accumulates.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from easymove.core.enums import FloorAccess, Urgency, VanSize
from easymove.core.errors import QuoteValidationError
from easymove.core.pricing_config import PricingConfig
from easymove.schemas.quote import PriceBreakdown, TripRequest
from easymove.services.congestion import CongestionZonePredicate, is_in_congestion_zone
from easymove.services.holidays import HolidayCalendar, holiday_calendar_for
from easymove.utils.money import ZERO, format_duration, format_price, round_money, to_decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")


def _money(value: Decimal, exact: bool) -> Decimal:
    return value if exact else round_money(value)


def estimate_hours(distance, hours, config: PricingConfig) -> Decimal:
    if hours is not None:
        return to_decimal(hours)
    return max(config.min_hours, to_decimal(distance) / config.average_speed_mph)


def is_urban_trip(distance, is_urban: Optional[bool], config: PricingConfig) -> bool:
    if is_urban is not None:
        return is_urban
    return to_decimal(distance) < config.urban_threshold_miles


def distance_charge(distance, van_size, is_urban: bool, config: PricingConfig, exact: bool = False) -> Decimal:
    rate = config.per_mile_rate(van_size)
    if is_urban:
        rate *= config.urban_rate_multiplier
    return _money(config.base_fare + to_decimal(distance) * rate, exact)


def time_charge(van_size, hours, config: PricingConfig, exact: bool = False) -> Decimal:
    return _money(config.hourly_rate(van_size) * to_decimal(hours), exact)


def helpers_fee(helper_count: int, hourly_helper_rate, hours, exact: bool = False) -> Decimal:
    return _money(Decimal(helper_count) * to_decimal(hourly_helper_rate) * to_decimal(hours), exact)


def floor_access_fee(floor_access, lift_available: bool, config: PricingConfig, exact: bool = False) -> Decimal:
    fee = config.floor_fee(floor_access)
    if lift_available and fee > 0:
        fee = max(ZERO, fee - config.lift_discount)
    return _money(fee, exact)


def _move_hour(move_date, move_time: Optional[str]) -> Optional[int]:
    if move_time:
        return int(move_time.split(":", 1)[0])
    if isinstance(move_date, datetime):
        return move_date.hour
    return None


def peak_time_multiplier(move_date, config: PricingConfig, holidays: HolidayCalendar,
                         move_time: Optional[str] = None) -> Decimal:
    day = move_date.date() if isinstance(move_date, datetime) else move_date
    multiplier = ONE

    if day.weekday() >= 5:
        multiplier *= config.weekend_multiplier

    hour = _move_hour(move_date, move_time)
    if hour is not None and hour >= config.evening_start_hour:
        multiplier *= config.evening_multiplier

    if holidays.is_holiday(day):
        multiplier *= config.holiday_multiplier

    return multiplier


def peak_time_rate(move_date, config: PricingConfig, holidays: HolidayCalendar,
                   move_time: Optional[str] = None) -> Decimal:
    return peak_time_multiplier(move_date, config, holidays, move_time) - ONE


def peak_time_surcharge(move_date, base_amount, config: PricingConfig, holidays: HolidayCalendar,
                        move_time: Optional[str] = None, exact: bool = False) -> Decimal:
    """Weekend, evening and bank holiday surcharge on ``base_amount``.

    ``base_amount`` is the distance + time + helpers charge. Returns exactly
    zero when none of the conditions apply.
    """
    rate = peak_time_rate(move_date, config, holidays, move_time)
    if rate <= 0:
        return ZERO
    return _money(to_decimal(base_amount) * rate, exact)


def urgency_rate(urgency, config: PricingConfig) -> Decimal:
    return config.urgency_multiplier(urgency) - ONE


def urgency_surcharge(urgency, base_amount, config: PricingConfig, exact: bool = False) -> Decimal:
    rate = urgency_rate(urgency, config)
    if rate <= 0:
        return ZERO
    return _money(to_decimal(base_amount) * rate, exact)


def fuel_cost(distance, van_size, config: PricingConfig, exact: bool = False) -> Decimal:
    gallons = to_decimal(distance) / config.miles_per_gallon(van_size)
    return _money(gallons * config.litres_per_gallon * config.fuel_price_per_litre, exact)


def return_journey_cost(distance, van_size, config: PricingConfig, exact: bool = False) -> Decimal:
    """Empty return leg, as banded shares of the one-way mileage charge.

    Bands apply marginally (the first 10 miles at the first factor, the next
    20 at the second, and so on), so the cost never drops as distance grows.
    """
    distance = to_decimal(distance)
    charged_miles = ZERO
    lower = ZERO
    for band in config.return_journey_bands:
        upper = distance if band.up_to_miles is None else min(distance, band.up_to_miles)
        if upper <= lower:
            break
        charged_miles += (upper - lower) * band.factor
        if band.up_to_miles is None:
            break
        lower = band.up_to_miles
    return _money(charged_miles * config.per_mile_rate(van_size), exact)


def congestion_charge(pickup_address: str, delivery_address: str, config: PricingConfig,
                      in_zone: CongestionZonePredicate = is_in_congestion_zone) -> Decimal:
    if in_zone(pickup_address) or in_zone(delivery_address):
        return config.congestion_charge
    return ZERO


def vat(subtotal, config: PricingConfig) -> Decimal:
    return round_money(to_decimal(subtotal) * config.vat_rate)


def price_with_vat(subtotal, config: PricingConfig) -> Decimal:
    subtotal = round_money(subtotal)
    return subtotal + vat(subtotal, config)


def net_from_gross(gross, config: PricingConfig) -> Decimal:
    """Strip VAT from a VAT-inclusive amount."""
    return round_money(to_decimal(gross) / (ONE + config.vat_rate))


def commission_split(subtotal, config: PricingConfig) -> Tuple[Decimal, Decimal]:
    subtotal = round_money(subtotal)
    platform_fee = round_money(subtotal * config.platform_fee_rate)
    return platform_fee, subtotal - platform_fee


def _percent(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"


def _explanation(trip: TripRequest, total: Decimal, estimated_time: str, config: PricingConfig) -> str:
    text = f"{format_price(total, config.currency_symbol)} for a {trip.van_size} van, {trip.distance:.1f} miles."
    if trip.helpers > 0:
        text += f" Includes {trip.helpers} helper{'s' if trip.helpers > 1 else ''}."
    if trip.floor_access != FloorAccess.GROUND:
        text += f" Includes {trip.floor_access.label} access{' with lift' if trip.lift_available else ''}."
    if trip.urgency != Urgency.STANDARD:
        text += f" {str(trip.urgency).capitalize()} service."
    text += f" Estimated time: {estimated_time}."
    return text


def build_breakdown(trip: TripRequest, config: PricingConfig, holidays: HolidayCalendar,
                    in_congestion_zone: CongestionZonePredicate = is_in_congestion_zone) -> PriceBreakdown:
    distance = to_decimal(trip.distance)
    van_size = VanSize(trip.van_size)
    hours = estimate_hours(distance, trip.estimated_hours, config)
    urban = is_urban_trip(distance, trip.is_urban, config)

    terms = {
        "distance_charge": distance_charge(distance, van_size, urban, config, exact=True),
        "time_charge": time_charge(van_size, hours, config, exact=True),
        "helpers_fee": helpers_fee(trip.helpers, config.helper_hourly_rate, hours, exact=True),
        "floor_access_fee": floor_access_fee(trip.floor_access, trip.lift_available, config, exact=True),
    }
    surcharge_base = terms["distance_charge"] + terms["time_charge"] + terms["helpers_fee"]
    terms["peak_time_surcharge"] = peak_time_surcharge(
        trip.move_date, surcharge_base, config, holidays, trip.move_time, exact=True
    )
    terms["urgency_surcharge"] = urgency_surcharge(trip.urgency, surcharge_base, config, exact=True)
    terms["fuel_cost"] = fuel_cost(distance, van_size, config, exact=True)
    terms["return_journey_cost"] = return_journey_cost(distance, van_size, config, exact=True)
    terms["congestion_charge"] = congestion_charge(
        trip.pickup_address, trip.delivery_address, config, in_congestion_zone
    )

    subtotal = round_money(sum(terms.values(), ZERO))
    vat_amount = vat(subtotal, config)
    total = subtotal + vat_amount
    platform_fee, driver_share = commission_split(subtotal, config)
    fields = {name: round_money(value) for name, value in terms.items()}

    peak_rate = peak_time_rate(trip.move_date, config, holidays, trip.move_time)
    urg_rate = urgency_rate(trip.urgency, config)
    estimated_time = format_duration(hours)

    def fmt(amount):
        return format_price(amount, config.currency_symbol)

    line_items = [
        f"Distance ({trip.distance:.1f} miles{', urban rate' if urban else ''}): {fmt(fields['distance_charge'])}",
        f"Time ({estimated_time}, {van_size} van): {fmt(fields['time_charge'])}",
        f"Helpers ({trip.helpers}): {fmt(fields['helpers_fee'])}",
    ]
    if fields["floor_access_fee"] > 0:
        line_items.append(f"Floor access ({trip.floor_access.label}): {fmt(fields['floor_access_fee'])}")
    if fields["peak_time_surcharge"] > 0:
        line_items.append(f"Peak time surcharge ({_percent(peak_rate)}): {fmt(fields['peak_time_surcharge'])}")
    if fields["urgency_surcharge"] > 0:
        line_items.append(
            f"{str(trip.urgency).capitalize()} service ({_percent(urg_rate)}): {fmt(fields['urgency_surcharge'])}"
        )
    line_items.append(f"Fuel: {fmt(fields['fuel_cost'])}")
    line_items.append(f"Return journey: {fmt(fields['return_journey_cost'])}")
    if fields["congestion_charge"] > 0:
        line_items.append(f"Congestion charge: {fmt(fields['congestion_charge'])}")
    line_items.extend([
        f"Subtotal (excluding VAT): {fmt(subtotal)}",
        f"VAT ({_percent(config.vat_rate)}): {fmt(vat_amount)}",
        f"Total (including VAT): {fmt(total)}",
        f"Platform fee ({_percent(config.platform_fee_rate)}): {fmt(platform_fee)}",
        f"Driver share ({_percent(ONE - config.platform_fee_rate)}): {fmt(driver_share)}",
    ])

    return PriceBreakdown(
        currency=config.currency,
        pricing_version=config.version,
        estimated_hours=hours.quantize(Decimal("0.01")),
        estimated_time=estimated_time,
        is_urban=urban,
        peak_time_rate=peak_rate,
        urgency_rate=urg_rate,
        subtotal=subtotal,
        vat_amount=vat_amount,
        total=total,
        platform_fee=platform_fee,
        driver_share=driver_share,
        line_items=line_items,
        explanation=_explanation(trip, total, estimated_time, config),
        **fields,
    )


def validate_trip(data: Mapping[str, Any]) -> TripRequest:
    try:
        return TripRequest.model_validate(data)
    except ValidationError as exc:
        raise QuoteValidationError.from_pydantic(exc) from exc


class QuoteCalculator:
    """Pricing config, holiday calendar and congestion predicate bound together."""

    def __init__(self, config: PricingConfig, holidays: Optional[HolidayCalendar] = None,
                 in_congestion_zone: Optional[CongestionZonePredicate] = None):
        self.config = config
        self.holidays = holidays if holidays is not None else holiday_calendar_for(config)
        self.in_congestion_zone = in_congestion_zone or is_in_congestion_zone

    def build_breakdown(self, trip: TripRequest) -> PriceBreakdown:
        return build_breakdown(trip, self.config, self.holidays, self.in_congestion_zone)

    def quote(self, data: Mapping[str, Any]) -> PriceBreakdown:
        trip = data if isinstance(data, TripRequest) else validate_trip(data)
        breakdown = self.build_breakdown(trip)
        logger.debug(
            f"Priced {trip.van_size} van, {trip.distance} miles: "
            f"subtotal {breakdown.subtotal}, total {breakdown.total}"
        )
        return breakdown

    def simple_quote(self, pickup_address: str, delivery_address: str, distance,
                     move_date: datetime, van_size=VanSize.MEDIUM) -> PriceBreakdown:
        """Home page quote: ground floor, no helpers, standard urgency."""
        return self.quote({
            "pickup_address": pickup_address,
            "delivery_address": delivery_address,
            "distance": distance,
            "van_size": van_size,
            "move_date": move_date,
        })
