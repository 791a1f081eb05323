from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from easymove.core.enums import FloorAccess, Urgency, VanSize

Number = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Money = Number

MIN_ADDRESS_LENGTH = 5


class TripRequest(BaseModel):
    pickup_address: str
    delivery_address: str
    distance: float = Field(gt=0, allow_inf_nan=False)
    van_size: VanSize = VanSize.MEDIUM
    move_date: datetime
    move_time: Optional[str] = Field(None, pattern=r"^([01]?\d|2[0-3]):[0-5]\d$")
    estimated_hours: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    helpers: int = Field(0, ge=0)
    floor_access: FloorAccess = FloorAccess.GROUND
    lift_available: bool = False
    urgency: Urgency = Urgency.STANDARD
    is_urban: Optional[bool] = None

    @field_validator("pickup_address", "delivery_address")
    @classmethod
    def _address_present(cls, value: str) -> str:
        value = value.strip()
        if len(value) < MIN_ADDRESS_LENGTH:
            raise ValueError("Please enter a valid address")
        return value

    @field_validator("van_size", mode="before")
    @classmethod
    def _van_size_default(cls, value):
        return VanSize(value)

    @field_validator("floor_access", mode="before")
    @classmethod
    def _floor_access_default(cls, value):
        return FloorAccess(value)

    @field_validator("urgency", mode="before")
    @classmethod
    def _urgency_default(cls, value):
        return Urgency(value)


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: str
    pricing_version: str
    estimated_hours: Number
    estimated_time: str
    is_urban: bool

    distance_charge: Money
    time_charge: Money
    helpers_fee: Money
    floor_access_fee: Money
    peak_time_rate: Number
    peak_time_surcharge: Money
    urgency_rate: Number
    urgency_surcharge: Money
    fuel_cost: Money
    return_journey_cost: Money
    congestion_charge: Money

    subtotal: Money
    vat_amount: Money
    total: Money
    platform_fee: Money
    driver_share: Money

    line_items: List[str]
    explanation: str


class QuoteCalculateIn(BaseModel):
    """Quote request as sent by the booking form.

    ``distance`` is looked up from the addresses when omitted. Values are
    taken raw and checked by ``validate_trip`` so every bad field comes back
    in the same 400 response.
    """

    pickup_address: str
    delivery_address: str
    distance: Any = None
    van_size: Optional[str] = None
    move_date: Any = None
    move_time: Any = None
    estimated_hours: Any = None
    helpers: Any = 0
    floor_access: Optional[str] = None
    lift_available: Any = False
    urgency: Optional[str] = None
    is_urban: Any = None


class SimpleQuoteIn(BaseModel):
    """Home page calculator: two addresses and an optional van size."""

    model_config = ConfigDict(populate_by_name=True)

    pickup_address: str = Field(alias="from", min_length=1)
    delivery_address: str = Field(alias="to", min_length=1)
    van_size: Optional[str] = None
    move_date: Any = None


class QuoteOut(PriceBreakdown):
    quote_reference: str
    pickup_address: str
    delivery_address: str
    distance: float
    van_size: VanSize
    move_date: datetime
    distance_method: Optional[str] = None


class DistanceIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    origin: str = Field(alias="from", min_length=1)
    destination: str = Field(alias="to", min_length=1)


class DistanceOut(BaseModel):
    distance: float
    unit: str = "miles"
    estimated_time: int
    origin: str
    destination: str
    calculation_method: str
