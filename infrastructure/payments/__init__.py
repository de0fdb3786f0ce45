"""Hosted checkout providers, selected through PaymentFactory."""

from .factory import PaymentFactory
from .interface import CheckoutSession, PaymentException, PaymentProviderInterface, PaymentStatus, WebhookEvent
from .mock_provider import MockPaymentProvider
from .stripe_provider import StripeProvider


__all__ = [
    "PaymentProviderInterface",
    "CheckoutSession",
    "WebhookEvent",
    "PaymentStatus",
    "PaymentException",
    "StripeProvider",
    "MockPaymentProvider",
    "PaymentFactory",
]
