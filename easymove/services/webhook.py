import httpx
import asyncio
import logging
import time
from typing import Optional
from easymove.core.config import settings
from easymove.core.metrics import webhook_deliveries, webhook_duration

logger = logging.getLogger(__name__)


def booking_event(booking, event: str = "booking.status_changed") -> dict:
    return {
        "event": event,
        "booking_reference": booking.reference,
        "status": str(booking.status),
        "total": str(booking.total),
        "currency": booking.currency,
        "move_date": booking.move_date.isoformat(),
    }


async def send_webhook(payload: dict, retries: Optional[int] = None, url: Optional[str] = None,
                       transport: Optional[httpx.AsyncBaseTransport] = None, backoff: float = 1.0) -> bool:
    """POST ``payload`` with exponential backoff. Returns False when undelivered."""
    url = url or settings.WEBHOOK_URL
    if not url:
        logger.debug("No webhook URL configured, skipping delivery")
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    reference = payload.get("booking_reference")
    start_time = time.time()

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT, transport=transport) as client:
                response = await client.post(url, json=payload)

                if 200 <= response.status_code < 300:
                    logger.info(f"Webhook delivery succeeded for booking {reference}")
                    webhook_deliveries.labels(status="success").inc()
                    webhook_duration.labels(status="success").observe(time.time() - start_time)
                    return True
                else:
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for booking {reference}"
                    )
        except httpx.TimeoutException:
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for booking {reference}"
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for booking {reference}"
            )

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    logger.error(f"Webhook delivery failed after {retries} attempts for booking {reference}")
    webhook_deliveries.labels(status="failed").inc()
    webhook_duration.labels(status="failed").observe(time.time() - start_time)
    return False
