"""Canonical pricing constants for the quote calculator"""
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from easymove.core.enums import FloorAccess, Urgency, VanSize

logger = logging.getLogger(__name__)


class ReturnJourneyBand(BaseModel):
    """Share of the one-way mileage charge paid for miles up to ``up_to_miles``.

    The last band is open ended (``up_to_miles`` is None).
    """

    model_config = ConfigDict(frozen=True)

    up_to_miles: Optional[Decimal] = Field(None, gt=0)
    factor: Decimal = Field(ge=0, le=1)


class PricingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = "2025.1"
    currency: str = "GBP"
    currency_symbol: str = "£"

    base_fare: Decimal = Field(Decimal("15.00"), ge=0)
    per_mile_rates: Dict[VanSize, Decimal] = Field(default_factory=lambda: {
        VanSize.SMALL: Decimal("0.80"),
        VanSize.MEDIUM: Decimal("0.95"),
        VanSize.LARGE: Decimal("1.10"),
        VanSize.LUTON: Decimal("1.20"),
    })
    urban_rate_multiplier: Decimal = Field(Decimal("1.25"), ge=1)
    urban_threshold_miles: Decimal = Field(Decimal("30"), ge=0)

    hourly_rates: Dict[VanSize, Decimal] = Field(default_factory=lambda: {
        VanSize.SMALL: Decimal("25.00"),
        VanSize.MEDIUM: Decimal("30.00"),
        VanSize.LARGE: Decimal("35.00"),
        VanSize.LUTON: Decimal("40.00"),
    })
    min_hours: Decimal = Field(Decimal("2"), gt=0)
    average_speed_mph: Decimal = Field(Decimal("30"), gt=0)
    helper_hourly_rate: Decimal = Field(Decimal("15.00"), ge=0)

    floor_access_fees: Dict[FloorAccess, Decimal] = Field(default_factory=lambda: {
        FloorAccess.GROUND: Decimal("0.00"),
        FloorAccess.FIRST: Decimal("15.00"),
        FloorAccess.SECOND: Decimal("25.00"),
        FloorAccess.THIRD_PLUS: Decimal("40.00"),
    })
    lift_discount: Decimal = Field(Decimal("10.00"), ge=0)

    weekend_multiplier: Decimal = Field(Decimal("1.15"), ge=1)
    evening_multiplier: Decimal = Field(Decimal("1.10"), ge=1)
    evening_start_hour: int = Field(18, ge=0, le=23)
    holiday_multiplier: Decimal = Field(Decimal("1.25"), ge=1)
    urgency_multipliers: Dict[Urgency, Decimal] = Field(default_factory=lambda: {
        Urgency.STANDARD: Decimal("1.00"),
        Urgency.PRIORITY: Decimal("1.15"),
        Urgency.EXPRESS: Decimal("1.30"),
    })

    mpg: Dict[VanSize, Decimal] = Field(default_factory=lambda: {
        VanSize.SMALL: Decimal("35"),
        VanSize.MEDIUM: Decimal("30"),
        VanSize.LARGE: Decimal("25"),
        VanSize.LUTON: Decimal("20"),
    })
    fuel_price_per_litre: Decimal = Field(Decimal("1.50"), ge=0)
    litres_per_gallon: Decimal = Field(Decimal("4.54609"), gt=0)

    return_journey_bands: Tuple[ReturnJourneyBand, ...] = (
        ReturnJourneyBand(up_to_miles=Decimal("10"), factor=Decimal("0.40")),
        ReturnJourneyBand(up_to_miles=Decimal("30"), factor=Decimal("0.30")),
        ReturnJourneyBand(up_to_miles=None, factor=Decimal("0.25")),
    )

    congestion_charge: Decimal = Field(Decimal("15.00"), ge=0)
    platform_fee_rate: Decimal = Field(Decimal("0.25"), ge=0, le=1)
    vat_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)

    # Empty means bank holidays are computed from rules.
    bank_holidays: Tuple[date, ...] = ()

    @model_validator(mode="after")
    def _check_tables(self):
        for name, members in (
            ("per_mile_rates", VanSize),
            ("hourly_rates", VanSize),
            ("mpg", VanSize),
            ("floor_access_fees", FloorAccess),
            ("urgency_multipliers", Urgency),
        ):
            table = getattr(self, name)
            missing = [str(m) for m in members if m not in table]
            if missing:
                raise ValueError(f"{name} is missing entries for: {', '.join(missing)}")
            if any(value < 0 for value in table.values()):
                raise ValueError(f"{name} cannot contain negative values")

        if any(value <= 0 for value in self.mpg.values()):
            raise ValueError("mpg values must be positive")
        if any(value < 1 for value in self.urgency_multipliers.values()):
            raise ValueError("urgency multipliers cannot be below 1")

        bands = self.return_journey_bands
        if not bands or bands[-1].up_to_miles is not None:
            raise ValueError("return_journey_bands must end with an open band")
        limits = [band.up_to_miles for band in bands[:-1]]
        if any(limit is None for limit in limits) or limits != sorted(set(limits)):
            raise ValueError("return_journey_bands limits must be strictly ascending")
        return self

    def per_mile_rate(self, van_size) -> Decimal:
        return self.per_mile_rates[VanSize(van_size)]

    def hourly_rate(self, van_size) -> Decimal:
        return self.hourly_rates[VanSize(van_size)]

    def miles_per_gallon(self, van_size) -> Decimal:
        return self.mpg[VanSize(van_size)]

    def floor_fee(self, floor_access) -> Decimal:
        return self.floor_access_fees[FloorAccess(floor_access)]

    def urgency_multiplier(self, urgency) -> Decimal:
        return self.urgency_multipliers[Urgency(urgency)]


def load_pricing_config(path: Optional[str] = None) -> PricingConfig:
    if not path:
        config = PricingConfig()
    else:
        config = PricingConfig.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(f"Loaded pricing config version {config.version}")
    return config
