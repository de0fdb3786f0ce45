"""
CheckoutService - hosted payment sessions for accepted auction deals.

Creating a session does not touch local state; the ledger only changes when
the payment is verified by PaymentReconciliationService.
"""

from django.conf import settings
from django.core.exceptions import ValidationError

from auctions.domain.models import AuctionLedger
from infrastructure.observability import add_span_attributes, tracer
from infrastructure.payments import PaymentException, PaymentProviderInterface
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.infra.observability.metrics import payment_sessions_created_total


class CheckoutService(BaseService):
    """
    Service for creating checkout sessions.

    Dependencies:
    - PaymentProviderInterface: hosted checkout provider (Stripe in production)
    """

    def __init__(self, payment_provider: PaymentProviderInterface, currency: str = None, frontend_url: str = None):
        super().__init__()
        self.payment_provider = payment_provider
        self.currency = (currency or getattr(settings, "PAYMENT_CURRENCY", "usd")).lower()
        self.frontend_url = (frontend_url or getattr(settings, "FRONTEND_URL", "")).rstrip("/")

    def _default_urls(self, listing_id):
        base = f"{self.frontend_url}/listings/{listing_id}/payment"
        return f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}", f"{base}/cancel"

    @BaseService.log_performance
    def create_payment_session(
        self, listing_id, buyer, success_url: str = None, cancel_url: str = None
    ) -> ServiceResult[dict]:
        """
        Open a hosted checkout for the selected buyer of a mutually accepted deal.

        The charged amount is the ledger's highest bid.
        """
        try:
            ledger = AuctionLedger.objects.select_related("listing").filter(listing_id=listing_id).first()
        except (ValidationError, ValueError):
            ledger = None
        if ledger is None:
            return service_err(ErrorCodes.LEDGER_NOT_FOUND, "No auction exists for this listing")

        if ledger.buyer_id is None or ledger.buyer_id != buyer.pk:
            return service_err(ErrorCodes.NOT_SELECTED_BUYER, "Only the selected buyer can pay for this listing")

        if not ledger.ready_for_payment:
            return service_err(
                ErrorCodes.NOT_READY_FOR_PAYMENT,
                "Both parties must accept the deal before payment, and it must not already be paid",
            )

        default_success, default_cancel = self._default_urls(ledger.listing_id)
        metadata = {
            "listing_id": str(ledger.listing_id),
            "buyer_id": str(buyer.pk),
            "ledger_id": str(ledger.pk),
        }

        with tracer.start_as_current_span("checkout_create_session") as span:
            add_span_attributes(span, listing_id=ledger.listing_id, ledger_id=ledger.pk, amount=ledger.highest_bid)
            try:
                session = self.payment_provider.create_checkout_session(
                    amount=ledger.highest_bid,
                    currency=self.currency,
                    description=f"Purchase: {ledger.listing.title}",
                    success_url=success_url or default_success,
                    cancel_url=cancel_url or default_cancel,
                    metadata=metadata,
                )
            except PaymentException as e:
                payment_sessions_created_total.labels(outcome="provider_error").inc()
                self.logger.error(f"Checkout session creation failed for ledger {ledger.pk}: {e}")
                return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

        payment_sessions_created_total.labels(outcome="created").inc()
        self.logger.info(f"Created checkout session {session.session_id} for ledger {ledger.pk}")

        return service_ok(
            {
                "session_id": session.session_id,
                "url": session.url,
                "amount": ledger.highest_bid,
                "currency": self.currency,
                "ledger_id": str(ledger.pk),
            }
        )
