from sqlalchemy import Column, String, Float, DateTime, Enum, Numeric, JSON
from easymove.models.base import BaseModel
from easymove.core.enums import BookingStatus, VanSize


class Booking(BaseModel):
    __tablename__ = "bookings"

    reference = Column(String(32), unique=True, nullable=False, index=True)
    quote_reference = Column(String(32), unique=True, nullable=False, index=True)

    customer_name = Column(String(128), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=True)

    pickup_address = Column(String(255), nullable=False)
    delivery_address = Column(String(255), nullable=False)
    distance = Column(Float, nullable=False)
    van_size = Column(Enum(VanSize), nullable=False)
    move_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False)
    vat_amount = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    platform_fee = Column(Numeric(10, 2), nullable=False)
    driver_share = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="GBP")

    payment_intent_id = Column(String(128), nullable=True)
    breakdown = Column(JSON, nullable=False)
