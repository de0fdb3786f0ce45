"""
PaymentWebhookService - provider callbacks for completed checkouts.

A completed-checkout webhook is treated exactly like the buyer polling
verify-checkout, so whichever arrives first finalizes and the other gets the
idempotent replay.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from infrastructure.payments import PaymentException, PaymentProviderInterface, WebhookEvent
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.services.reconciliation_service import PaymentReconciliationService
from utils.logging_utils import sanitize_payload


User = get_user_model()


class PaymentWebhookService(BaseService):
    HANDLED_EVENTS = ("checkout.session.completed",)

    def __init__(
        self, payment_provider: PaymentProviderInterface, reconciliation_service: PaymentReconciliationService
    ):
        super().__init__()
        self.payment_provider = payment_provider
        self.reconciliation_service = reconciliation_service

    def process_webhook(self, payload: bytes, signature: str) -> ServiceResult[dict]:
        """Verify the provider signature, then dispatch the event."""
        try:
            event = self.payment_provider.verify_webhook(payload, signature)
        except PaymentException as e:
            self.logger.warning(f"Rejected webhook: {e}")
            return service_err(ErrorCodes.VALIDATION_ERROR, str(e))
        return self.handle_event(event)

    @BaseService.log_performance
    def handle_event(self, event: WebhookEvent) -> ServiceResult[dict]:
        """
        Dispatch a verified webhook event.

        Unhandled event types are acknowledged with ``handled=False`` so the
        provider stops redelivering them.
        """
        if event.event_type not in self.HANDLED_EVENTS:
            self.logger.info(f"Ignoring webhook event {event.event_id} of type {event.event_type}")
            return service_ok({"event_id": event.event_id, "event_type": event.event_type, "handled": False})

        session_id = event.data.get("id")
        metadata = event.data.get("metadata") or {}
        listing_id = metadata.get("listing_id")
        buyer_id = metadata.get("buyer_id")

        if not listing_id or not buyer_id:
            self.logger.error(
                f"Checkout session {session_id} carries incomplete metadata: "
                f"{sanitize_payload(metadata, ('listing_id', 'buyer_id', 'ledger_id'))}"
            )
            return service_err(ErrorCodes.VALIDATION_ERROR, "Checkout session metadata is incomplete")

        try:
            buyer = User.objects.get(pk=buyer_id)
        except (User.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.BUYER_MISMATCH, f"Buyer {buyer_id} from session metadata does not exist")

        result = self.reconciliation_service.verify_and_finalize_payment(listing_id, buyer, session_id)
        if not result.ok:
            return result

        return service_ok(
            {
                "event_id": event.event_id,
                "event_type": event.event_type,
                "handled": True,
                "already_paid": result.value["already_paid"],
                "invoice_number": result.value["invoice_number"],
            }
        )
