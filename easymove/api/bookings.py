import logging
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional

from easymove.core.audit_log import log_audit
from easymove.core.auth_utils import check_not_found
from easymove.core.enums import AuditAction
from easymove.core.response_builders import build_booking_response
from easymove.core.security import require_admin
from easymove.db.session import get_db
from easymove.models.booking import Booking
from easymove.schemas.booking import BookingOut, BookingStatusUpdate, CheckoutIn, CheckoutOut
from easymove.services.checkout import create_booking
from easymove.services.payments import PaymentGateway, get_payment_gateway
from easymove.services.quote_cache import load_quote
from easymove.services.webhook import booking_event, send_webhook
from easymove.utils.idempotency import get_idempotent, set_idempotent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


async def _get_booking(db: AsyncSession, reference: str) -> Booking:
    res = await db.execute(select(Booking).where(Booking.reference == reference))
    booking = res.scalars().first()
    check_not_found(booking, "Booking", reference)
    return booking


@router.post("/checkout", response_model=CheckoutOut)
async def checkout(
    payload: CheckoutIn,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    previous = await get_idempotent(idempotency_key)
    if previous:
        return previous

    quote = await load_quote(payload.quote_reference)
    check_not_found(quote, "Quote", payload.quote_reference)

    res = await db.execute(select(Booking).where(Booking.quote_reference == quote.quote_reference))
    if res.scalars().first():
        raise HTTPException(status_code=409, detail="Quote already booked")

    try:
        booking, intent = await create_booking(db, quote, payload, gateway)
    except IntegrityError:
        # another checkout of this quote got there first
        await db.rollback()
        raise HTTPException(status_code=409, detail="Quote already booked")

    reference = booking.reference
    await log_audit(db, None, AuditAction.CREATE_BOOKING, {"reference": reference}, resource="booking")
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.error(f"Booking {reference} was not saved, payment intent {intent.id} has no booking")
        raise
    await db.refresh(booking)

    out = CheckoutOut(
        booking_reference=booking.reference,
        quote_reference=booking.quote_reference,
        status=booking.status,
        amount=intent.amount,
        currency=quote.currency,
        total=quote.total,
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
    )
    await set_idempotent(idempotency_key, out.model_dump(mode="json"))
    return out


@router.get("/{reference}", response_model=BookingOut)
async def get_booking(reference: str, db: AsyncSession = Depends(get_db)):
    return build_booking_response(await _get_booking(db, reference))


@router.patch("/{reference}/status", response_model=BookingOut)
async def update_booking_status(
    reference: str,
    payload: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    booking = await _get_booking(db, reference)
    old_status = booking.status

    booking.status = payload.status
    await log_audit(db, current_user.id, AuditAction.UPDATE_BOOKING_STATUS,
                    {"reference": reference, "status": str(payload.status)}, resource="booking")
    await db.commit()
    await db.refresh(booking)

    if old_status != booking.status:
        # delivery retries with backoff, so it runs after the response is sent
        background_tasks.add_task(send_webhook, booking_event(booking))

    return build_booking_response(booking)
