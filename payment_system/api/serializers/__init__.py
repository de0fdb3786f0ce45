from .request_serializers import CheckoutSessionRequestSerializer, VerifyCheckoutRequestSerializer
from .response_serializers import (
    CheckoutSessionResponseSerializer,
    PaymentTransactionSerializer,
    TransactionListResponseSerializer,
    VerifyCheckoutResponseSerializer,
    WebhookResponseSerializer,
)


__all__ = [
    "CheckoutSessionRequestSerializer",
    "VerifyCheckoutRequestSerializer",
    "CheckoutSessionResponseSerializer",
    "PaymentTransactionSerializer",
    "TransactionListResponseSerializer",
    "VerifyCheckoutResponseSerializer",
    "WebhookResponseSerializer",
]
