"""
Builds the payment provider named by ``INFRASTRUCTURE["PAYMENT_PROVIDER"]``.
"""

import logging
from typing import Callable, Dict, Literal

from django.conf import settings

from .interface import PaymentProviderInterface
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider


logger = logging.getLogger(__name__)

PaymentBackend = Literal["stripe", "mock"]

_PROVIDERS: Dict[str, Callable[[], PaymentProviderInterface]] = {
    "stripe": StripeProvider,
    "mock": MockPaymentProvider,
}


class PaymentFactory:
    @staticmethod
    def create(backend: PaymentBackend | None = None) -> PaymentProviderInterface:
        """Return a provider for ``backend`` or the configured one. Unknown names raise ValueError."""
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("PAYMENT_PROVIDER", "stripe")
        builder = _PROVIDERS.get(backend_type)
        if builder is None:
            raise ValueError(f"Invalid payment provider: {backend_type}. Must be one of {sorted(_PROVIDERS)}")

        logger.info(f"Creating payment provider: {backend_type}")
        return builder()
