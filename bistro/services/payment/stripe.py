"""
Stripe Payment Service Implementation

Production implementation using the official Stripe Python SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - PAYMENT_SECRET must be set in environment

The checkout page confirms the card with Stripe.js, so the server only
creates the PaymentIntent and hands its client secret back.
"""

import logging
from datetime import datetime
from typing import Optional

import stripe
from starlette.concurrency import run_in_threadpool

from bistro.core.config import Settings, get_settings
from bistro.services.payment.base import (
    BasePaymentService,
    PaymentResult,
    to_cents,
)

logger = logging.getLogger(__name__)


class StripePaymentService(BasePaymentService):
    """
    Stripe payment service.

    Configuration:
        Requires the PAYMENT_SECRET environment variable.

    Example:
        >>> service = StripePaymentService()
        >>> result = await service.create_payment_intent(amount=20)
        >>> result.client_secret
        'pi_..._secret_...'
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize Stripe with the API key from settings.

        Raises:
            ValueError: If PAYMENT_SECRET is not configured
        """
        settings = settings or get_settings()

        if not settings.payment_secret:
            raise ValueError(
                "PAYMENT_SECRET is required outside development mode. "
                "Set it in your .env file or environment variables."
            )

        stripe.api_key = settings.payment_secret
        self._currency = settings.stripe_currency

        logger.info("StripePaymentService initialized")

    @property
    def provider_name(self) -> str:
        return "stripe"

    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Create a card PaymentIntent for client-side confirmation.

        Returns a client_secret that the frontend uses with Stripe.js
        to complete the payment.
        """
        start_time = datetime.now()

        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                amount=to_cents(amount),
                currency=currency or self._currency,
                payment_method_types=["card"],
                metadata=metadata or {},
            )

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

            logger.info(
                f"Stripe: PaymentIntent created - {intent.id} - "
                f"amount={intent.amount} {intent.currency}"
            )

            return PaymentResult(
                success=True,
                payment_intent_id=intent.id,
                client_secret=intent.client_secret,
                amount=intent.amount / 100.0,
                currency=intent.currency,
                response_time_ms=elapsed_ms,
            )

        except stripe.StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Failed to create PaymentIntent - {e}")

            return PaymentResult(
                success=False,
                error_message=getattr(e, "user_message", None) or str(e),
                error_code=getattr(e, "code", None) or "stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def health_check(self) -> bool:
        """
        Verify Stripe API connectivity.

        Makes a lightweight API call to verify credentials and connectivity.
        """
        try:
            await run_in_threadpool(stripe.Balance.retrieve)
            return True

        except stripe.StripeError as e:
            logger.error(f"Stripe: Health check failed - {e}")
            return False
