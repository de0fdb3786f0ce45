from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import CheckoutSessionView, StripeWebhookView, TransactionViewSet, VerifyCheckoutView


router = DefaultRouter()
router.register(r"transactions", TransactionViewSet, basename="transaction")

app_name = "payment_system"

urlpatterns = [
    path("checkout-session/", CheckoutSessionView.as_view(), name="checkout-session"),
    path("verify-checkout/", VerifyCheckoutView.as_view(), name="verify-checkout"),
    path("stripe-webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("", include(router.urls)),
]
