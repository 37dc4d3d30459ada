import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


def to_minor_units(amount) -> int:
    """Convert a major-unit amount to whole cents, rounding half up.

    The amount goes through ``str`` so binary float noise does not move the
    result: ``19.99`` becomes ``1999`` and ``10.005`` becomes ``1001``.
    """
    try:
        cents = Decimal(str(amount)) * 100
    except InvalidOperation as e:
        raise PaymentProviderError(f"Invalid amount: {amount}") from e
    if not cents.is_finite():
        raise PaymentProviderError(f"Invalid amount: {amount}")
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripePaymentGateway:
    """Creates card-only payment intents with Stripe."""

    def __init__(self, api_key: Optional[str], currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    async def create_payment_intent(self, amount) -> str:
        if not self.api_key:
            logger.error("STRIPE_SECRET_KEY is not configured")
            raise PaymentProviderError("Payment provider is not configured")

        minor_units = to_minor_units(amount)
        logger.info(f"Creating payment intent for price: {amount} ({minor_units} minor units)")
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=minor_units,
                currency=self.currency,
                payment_method_types=["card"],
            )
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.error(f"Stripe error: {message}")
            raise PaymentProviderError(message) from e

        logger.info("Payment intent created successfully")
        return intent.client_secret
