from sqlalchemy import Column, String, Float, Enum, Numeric
from easymove.models.base import BaseModel
from easymove.core.enums import Urgency, VanSize


class PricingHistory(BaseModel):
    """One row per priced quote, for tuning rates against real demand."""

    __tablename__ = "pricing_history"

    quote_reference = Column(String(32), unique=True, nullable=False, index=True)
    pricing_version = Column(String(32), nullable=False)
    distance = Column(Float, nullable=False)
    van_size = Column(Enum(VanSize), nullable=False)
    urgency = Column(Enum(Urgency), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
