"""
Stripe Payment Provider
========================

Concrete implementation of PaymentProviderInterface using Stripe Checkout.
"""

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .interface import CheckoutSession, PaymentException, PaymentProviderInterface, PaymentStatus, WebhookEvent


logger = logging.getLogger(__name__)

RETRYABLE_STRIPE_ERRORS = (
    stripe.RateLimitError,
    stripe.APIConnectionError,
    stripe.APIError,
)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeProvider(PaymentProviderInterface):
    """
    Stripe payment provider implementation.

    Configuration (in settings.py):
        STRIPE_SECRET_KEY: Stripe secret API key
        STRIPE_WEBHOOK_SECRET: Webhook endpoint secret for signature verification
        STRIPE_TIMEOUT_SECONDS: HTTP timeout for every Stripe request
    """

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None, timeout: Optional[int] = None):
        stripe.api_key = api_key or getattr(settings, "STRIPE_SECRET_KEY", "")
        self.webhook_secret = webhook_secret or getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
        self.timeout = timeout or getattr(settings, "STRIPE_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)
        stripe.max_network_retries = 0

        if not stripe.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_STRIPE_ERRORS),
        reraise=True,
    )
    def _create_checkout_session_api(self, **kwargs):
        """Internal method to create session with retries."""
        return stripe.checkout.Session.create(**kwargs)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_STRIPE_ERRORS),
        reraise=True,
    )
    def _retrieve_session_api(self, session_id):
        return stripe.checkout.Session.retrieve(session_id)

    def create_checkout_session(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CheckoutSession:
        """
        Create a Stripe checkout session for a single line item.

        Raises:
            PaymentException: If session creation fails
        """
        amount_cents = to_minor_units(amount)
        session_params = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "unit_amount": amount_cents,
                        "product_data": {"name": description},
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if metadata:
            # Stripe metadata values must be strings
            session_params["metadata"] = {key: str(value) for key, value in metadata.items()}

        try:
            session = self._create_checkout_session_api(**session_params)
        except stripe.StripeError as e:
            logger.error(f"Stripe session creation failed: {str(e)}")
            raise PaymentException(f"Failed to create checkout session: {str(e)}") from e

        logger.info(f"Created Stripe checkout session: {session.id}")

        return CheckoutSession(
            session_id=session.id,
            url=session.url,
            amount=amount_cents,
            currency=currency.lower(),
            status=self._map_stripe_status(session.payment_status),
            metadata=dict(session_params.get("metadata", {})),
        )

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        """
        Retrieve an existing Stripe checkout session.

        Raises:
            PaymentException: If retrieval fails
        """
        try:
            session = self._retrieve_session_api(session_id)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve session {session_id}: {str(e)}")
            raise PaymentException(f"Session retrieval failed: {str(e)}") from e

        logger.info(f"Retrieved Stripe session: {session_id}")

        return CheckoutSession(
            session_id=session.id,
            url=session.url or "",
            amount=session.amount_total or 0,
            currency=session.currency or "",
            status=self._map_stripe_status(session.payment_status),
            metadata=dict(session.metadata or {}),
            payment_reference=self._payment_reference(session),
        )

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify Stripe webhook signature and parse event.

        Raises:
            PaymentException: If verification fails
        """
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {str(e)}")
            raise PaymentException("Invalid webhook payload") from e
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {str(e)}")
            raise PaymentException("Webhook signature verification failed") from e

        logger.info(f"Verified Stripe webhook event: {event['type']}")

        # Signature checked above; the raw body gives plain dicts.
        body = json.loads(payload)
        return WebhookEvent(
            event_id=body["id"],
            event_type=body["type"],
            data=body["data"]["object"],
            created_at=body["created"],
        )

    @staticmethod
    def _payment_reference(session) -> Optional[str]:
        intent = getattr(session, "payment_intent", None)
        if intent is None:
            return None
        if isinstance(intent, str):
            return intent
        return getattr(intent, "id", None)

    def _map_stripe_status(self, stripe_status: str) -> PaymentStatus:
        """
        Map Stripe's session ``payment_status`` to PaymentStatus.

        ``no_payment_required`` stays pending: every auction charge is non-zero,
        so a session that captured nothing never settles a ledger.
        """
        status_mapping = {
            "unpaid": PaymentStatus.PENDING,
            "paid": PaymentStatus.SUCCEEDED,
        }
        return status_mapping.get(stripe_status, PaymentStatus.PENDING)
