"""
Mock Payment Service Implementation

Simulates Stripe payment intents without making real API calls.
Used in development mode (ENV_MODE=development) to:
    - Run the checkout flow locally without a Stripe account
    - Exercise the error path with a configurable decline rate

Behavior:
    - Optional simulated latency
    - Randomly declines a configurable share of requests
    - Generates Stripe-like IDs (pi_mock_xxx) and client secrets
"""

import asyncio
import logging
import random
import uuid
from typing import Optional

from bistro.services.payment.base import (
    BasePaymentService,
    PaymentResult,
)

logger = logging.getLogger(__name__)


class MockPaymentService(BasePaymentService):
    """
    Mock implementation of the payment service.

    Attributes:
        failure_rate: Probability of simulated decline (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> service = MockPaymentService(failure_rate=0.0)
        >>> result = await service.create_payment_intent(20)
        >>> result.client_secret.endswith("_secret_mock")
        True
    """

    # Simulated failure reasons (mimics real Stripe decline codes)
    DECLINE_REASONS = [
        ("card_declined", "Your card was declined."),
        ("processing_error", "An error occurred while processing your card."),
        ("rate_limit", "Too many requests hit the API too quickly."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(max_latency, min_latency)

        logger.info(
            f"MockPaymentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={self.min_latency}-{self.max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    def _generate_payment_intent_id(self) -> str:
        """Generate a Stripe-like payment intent ID."""
        return f"pi_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        """Sleep for a random latency; returns it in milliseconds."""
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        metadata: Optional[dict] = None,
    ) -> PaymentResult:
        """
        Simulate creating a payment intent.

        The client secret has Stripe's shape but will not work with Stripe.js.
        """
        latency_ms = await self._simulate_latency()

        if amount <= 0:
            return PaymentResult(
                success=False,
                error_message="Amount must be greater than 0",
                error_code="invalid_amount",
                response_time_ms=latency_ms,
            )

        if self._should_fail():
            error_code, error_message = random.choice(self.DECLINE_REASONS)
            logger.debug(f"Mock: Payment intent declined - {error_code}")
            return PaymentResult(
                success=False,
                amount=amount,
                currency=currency,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        payment_intent_id = self._generate_payment_intent_id()

        logger.debug(f"Mock: Created payment intent {payment_intent_id}")

        return PaymentResult(
            success=True,
            payment_intent_id=payment_intent_id,
            client_secret=f"{payment_intent_id}_secret_mock",
            amount=amount,
            currency=currency,
            response_time_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """The mock is always available."""
        return True
