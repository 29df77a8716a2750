"""
Payment Service Factory

Provides a single entry point for obtaining a payment service instance.
Routes depend on ``get_payment_service`` and never on a concrete provider.

Usage:
    from bistro.services.payment import get_payment_service

    payment_service = get_payment_service()
    result = await payment_service.create_payment_intent(20)

Environment Switching:
    - ENV_MODE=development, no PAYMENT_SECRET → MockPaymentService (no API calls)
    - PAYMENT_SECRET set → StripePaymentService, whatever the mode
    - ENV_MODE=staging/production, no PAYMENT_SECRET → ValueError
"""

import logging
from functools import lru_cache

from bistro.core.config import get_settings
from bistro.services.payment.base import (
    BasePaymentService,
    PaymentResult,
    to_cents,
)
from bistro.services.payment.mock import MockPaymentService
from bistro.services.payment.stripe import StripePaymentService

logger = logging.getLogger(__name__)


@lru_cache()
def get_payment_service() -> BasePaymentService:
    """
    Get the configured payment service instance.

    The instance is cached so the Stripe key is configured once per process.

    Raises:
        ValueError: If staging/production but PAYMENT_SECRET is not configured
    """
    settings = get_settings()

    if settings.use_mock_payments:
        logger.info("Payment Service: Using MockPaymentService (no PAYMENT_SECRET)")
        return MockPaymentService(
            failure_rate=settings.mock_payment_failure_rate,
            min_latency=settings.mock_payment_min_latency,
            max_latency=settings.mock_payment_max_latency,
        )

    logger.info(
        f"Payment Service: Using StripePaymentService "
        f"({settings.env_mode.value} mode)"
    )
    return StripePaymentService(settings)


def reset_payment_service() -> None:
    """
    Clear the cached payment service instance.

    The next call to get_payment_service() will create a new instance.
    """
    get_payment_service.cache_clear()
    logger.debug("Payment service cache cleared")


__all__ = [
    "get_payment_service",
    "reset_payment_service",
    "to_cents",
    "BasePaymentService",
    "PaymentResult",
    "MockPaymentService",
    "StripePaymentService",
]
