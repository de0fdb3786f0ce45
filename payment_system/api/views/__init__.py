from .payment_views import CheckoutSessionView, StripeWebhookView, TransactionViewSet, VerifyCheckoutView


__all__ = ["CheckoutSessionView", "StripeWebhookView", "TransactionViewSet", "VerifyCheckoutView"]
