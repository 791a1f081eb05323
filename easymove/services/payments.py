"""Payment intent contract.

Only the intent is modelled here; card capture and provider webhooks belong to
the provider. ``MockPaymentGateway`` is used until a provider is configured.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Dict, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    async def create_payment_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        ...


class MockPaymentGateway:
    async def create_payment_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        if amount <= 0:
            raise ValueError("Payment amount must be positive")
        intent_id = f"pi_mock_{secrets.token_hex(8)}"
        logger.info(f"Created mock payment intent {intent_id} for {amount} {currency.lower()}")
        return PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{secrets.token_hex(8)}",
            amount=amount,
            currency=currency.lower(),
        )


_gateway: PaymentGateway = MockPaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    return _gateway
