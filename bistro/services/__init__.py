"""
                        Services Module

External collaborators, each with a Mock (development) and a Real
(staging/production) implementation.

Services:
    - payment: Stripe payment intents
"""

from bistro.services.payment import get_payment_service

__all__ = ["get_payment_service"]
