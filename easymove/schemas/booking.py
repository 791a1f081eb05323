from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, Optional
from datetime import datetime
from easymove.core.enums import BookingStatus, Urgency, VanSize
from easymove.schemas.quote import Money


class CheckoutIn(BaseModel):
    quote_reference: str = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=128)
    customer_email: EmailStr
    customer_phone: Optional[str] = Field(None, max_length=32)


class CheckoutOut(BaseModel):
    booking_reference: str
    quote_reference: str
    status: BookingStatus
    amount: int
    currency: str
    total: Money
    payment_intent_id: str
    client_secret: str


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference: str
    quote_reference: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    pickup_address: str
    delivery_address: str
    distance: float
    van_size: VanSize
    move_date: datetime
    status: BookingStatus
    subtotal: Money
    vat_amount: Money
    total: Money
    platform_fee: Money
    driver_share: Money
    currency: str
    payment_intent_id: Optional[str] = None
    breakdown: Dict[str, Any]
    created_at: datetime
    updated_at: Optional[datetime] = None


class PricingHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quote_reference: str
    pricing_version: str
    distance: float
    van_size: VanSize
    urgency: Urgency
    subtotal: Money
    total: Money
    created_at: datetime
