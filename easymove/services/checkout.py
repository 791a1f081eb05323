import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from easymove.core.enums import BookingStatus
from easymove.core.metrics import bookings_created
from easymove.models.booking import Booking
from easymove.schemas.booking import CheckoutIn
from easymove.schemas.quote import QuoteOut
from easymove.services.payments import PaymentGateway, PaymentIntent
from easymove.utils.money import to_minor_units

logger = logging.getLogger(__name__)


def new_booking_reference() -> str:
    return f"BK{secrets.token_hex(4).upper()}"


def payment_amount(quote: QuoteOut) -> int:
    """The customer pays the VAT-inclusive total, in pence."""
    return to_minor_units(quote.total)


async def create_booking(db: AsyncSession, quote: QuoteOut, customer: CheckoutIn,
                         gateway: PaymentGateway) -> tuple[Booking, PaymentIntent]:
    """Insert the booking, then open a payment intent for it.

    The row is flushed first so a second checkout of the same quote fails on
    the unique ``quote_reference`` before anything is charged.
    """
    reference = new_booking_reference()
    booking = Booking(
        reference=reference,
        quote_reference=quote.quote_reference,
        customer_name=customer.customer_name,
        customer_email=customer.customer_email,
        customer_phone=customer.customer_phone,
        pickup_address=quote.pickup_address,
        delivery_address=quote.delivery_address,
        distance=quote.distance,
        van_size=quote.van_size,
        move_date=quote.move_date,
        status=BookingStatus.PENDING,
        subtotal=quote.subtotal,
        vat_amount=quote.vat_amount,
        total=quote.total,
        platform_fee=quote.platform_fee,
        driver_share=quote.driver_share,
        currency=quote.currency,
        breakdown=quote.model_dump(mode="json"),
    )
    db.add(booking)
    await db.flush()

    intent = await gateway.create_payment_intent(
        payment_amount(quote),
        quote.currency,
        {"booking_reference": reference, "quote_reference": quote.quote_reference},
    )
    booking.payment_intent_id = intent.id

    bookings_created.labels(van_size=str(quote.van_size)).inc()
    logger.info(f"Booking {reference} created from quote {quote.quote_reference}")
    return booking, intent
