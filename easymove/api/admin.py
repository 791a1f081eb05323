from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from easymove.core.enums import BookingStatus
from easymove.core.response_builders import build_booking_response_list, build_pricing_history_response_list
from easymove.core.security import require_admin, require_staff
from easymove.db.session import get_db
from easymove.models.booking import Booking
from easymove.models.pricing_history import PricingHistory
from easymove.schemas.booking import BookingOut, PricingHistoryOut

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/bookings", response_model=List[BookingOut])
async def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_staff),
):
    q = select(Booking).order_by(Booking.id.desc())
    if status:
        q = q.where(Booking.status == status)
    res = await db.execute(q.limit(limit).offset(offset))
    return build_booking_response_list(res.scalars().all())


@router.get("/pricing-history", response_model=List[PricingHistoryOut])
async def pricing_history(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    q = select(PricingHistory).order_by(PricingHistory.id.desc())
    res = await db.execute(q.limit(limit).offset(offset))
    return build_pricing_history_response_list(res.scalars().all())
