"""
PaymentReconciliationService - turns a paid checkout session into exactly
one PaymentTransaction and one Delivery.

The provider is queried before any lock is taken. The ledger is then locked
(listing row first, ledger row second) and marked paid in the same database
transaction that mints both records, so a client poll racing a webhook, or a
retried request, still produces a single pair. Emails and events follow the
commit and never roll it back.
"""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone

from auctions.domain.models import AuctionLedger
from authentication.domain.services import IdentityLookupService
from infrastructure.observability import add_span_attributes, tracer
from infrastructure.payments import CheckoutSession, PaymentException, PaymentProviderInterface
from infrastructure.payments.stripe_provider import to_minor_units
from marketplace.catalog.domain.services import ListingStore
from marketplace.domain.events import DeliveryCreatedEvent
from marketplace.ordering.domain.models import Delivery
from marketplace.ordering.domain.services import DeliveryService
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.events import PaymentCompletedEvent
from payment_system.domain.models import PaymentTransaction
from payment_system.domain.services.notification_service import InvoiceNotificationService
from payment_system.infra.observability.metrics import (
    duplicate_captures_total,
    payment_volume_total,
    payments_finalized_total,
    records_repaired_total,
)
from utils.transaction_utils import retry_on_deadlock


def generate_invoice_number() -> str:
    prefix = getattr(settings, "PAYMENTS", {}).get("INVOICE_PREFIX", "INV")
    return f"{prefix}-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:10].upper()}"


def transaction_summary(payment_transaction: PaymentTransaction) -> dict:
    return {
        "transaction_id": str(payment_transaction.pk),
        "invoice_number": payment_transaction.invoice_number,
        "amount": payment_transaction.amount,
        "currency": payment_transaction.currency,
        "status": payment_transaction.status,
        "buyer_id": str(payment_transaction.buyer_id),
        "seller_id": str(payment_transaction.seller_id),
        "transaction_date": payment_transaction.transaction_date,
    }


def delivery_summary(delivery: Delivery) -> dict:
    return {
        "delivery_id": str(delivery.pk),
        "tracking_number": delivery.tracking_number,
        "expected_delivery_date": delivery.expected_delivery_date,
        "status": delivery.status,
    }


class PaymentReconciliationService(BaseService):
    """
    Service for verifying payments and completing paid ledgers.

    Dependencies:
    - PaymentProviderInterface: session retrieval
    - DeliveryService: delivery minting
    - InvoiceNotificationService: best-effort invoice emails
    - IdentityLookupService: names and addresses for the invoices
    """

    def __init__(
        self,
        payment_provider: PaymentProviderInterface,
        delivery_service: DeliveryService,
        notification_service: InvoiceNotificationService,
        identity_service: IdentityLookupService = None,
        listing_store: ListingStore = None,
        event_bus=None,
        currency: str = None,
    ):
        super().__init__()
        self.payment_provider = payment_provider
        self.delivery_service = delivery_service
        self.notification_service = notification_service
        self.identity_service = identity_service or IdentityLookupService()
        self.listing_store = listing_store or ListingStore()
        self.event_bus = event_bus
        self.currency = (currency or getattr(settings, "PAYMENT_CURRENCY", "usd")).lower()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def verify_and_finalize_payment(self, listing_id, buyer, session_reference) -> ServiceResult[dict]:
        """
        Confirm a checkout session with the provider and record the sale.

        Calling this again for a paid ledger returns the existing identifiers
        with ``already_paid=True``.
        """
        session_reference = (session_reference or "").strip()
        if not session_reference:
            return service_err(ErrorCodes.MISSING_SESSION_REFERENCE, "A checkout session reference is required")

        with tracer.start_as_current_span("payment_verify_and_finalize") as span:
            add_span_attributes(span, listing_id=listing_id, session_id=session_reference)

            try:
                session = self.payment_provider.retrieve_session(session_reference)
            except PaymentException as e:
                payments_finalized_total.labels(outcome="provider_error").inc()
                self.logger.error(f"Could not retrieve checkout session {session_reference}: {e}")
                return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

            if not session.is_paid:
                payments_finalized_total.labels(outcome="not_paid").inc()
                return service_err(
                    ErrorCodes.PAYMENT_NOT_COMPLETED,
                    f"Checkout session {session_reference} has not been paid (status: {session.status.value})",
                )

            with tracer.start_as_current_span("payment_finalize_critical_section"):
                result, created = self._finalize_locked(listing_id, buyer, session)

        if not result.ok:
            payments_finalized_total.labels(outcome=result.error).inc()
            return result

        if result.value["already_paid"]:
            payments_finalized_total.labels(outcome="already_paid").inc()
            self._publish_repaired(result.value, created)
            return result

        payments_finalized_total.labels(outcome="finalized").inc()
        payment_volume_total.labels(currency=result.value["transaction"]["currency"]).inc(
            float(result.value["transaction"]["amount"])
        )
        payment_transaction = created["transaction"] or PaymentTransaction.objects.get(
            pk=result.value["transaction"]["transaction_id"]
        )
        result.value["notifications"] = self._notify_parties(payment_transaction)
        self._publish_completed(result.value, created)
        return result

    @retry_on_deadlock()
    def _finalize_locked(self, listing_id, buyer, session: CheckoutSession):
        created = {"transaction": None, "delivery": None}
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LEDGER_NOT_FOUND, f"No auction exists for listing {listing_id}"), created

            metadata = session.metadata or {}
            if metadata.get("listing_id") and metadata["listing_id"] != str(listing.pk):
                return (
                    service_err(ErrorCodes.SESSION_MISMATCH, "Checkout session belongs to a different listing"),
                    created,
                )

            ledger, error = self._resolve_ledger(listing, buyer, metadata)
            if error is not None:
                return error, created

            if metadata.get("ledger_id") and metadata["ledger_id"] != str(ledger.pk):
                return (
                    service_err(ErrorCodes.SESSION_MISMATCH, "Checkout session belongs to a different auction"),
                    created,
                )

            if ledger.is_paid:
                payment_transaction, delivery, created = self._ensure_records(ledger, listing, session.currency)
                summary = self._summary(ledger, payment_transaction, delivery, already_paid=True)
                if ledger.checkout_session_id and ledger.checkout_session_id != session.session_id:
                    # The buyer was charged twice; the second capture needs a manual refund.
                    duplicate_captures_total.inc()
                    self.logger.error(
                        f"Ledger {ledger.pk} already paid with session {ledger.checkout_session_id}, "
                        f"duplicate capture by session {session.session_id} "
                        f"({session.amount} {session.currency}) needs a refund"
                    )
                    summary["duplicate_capture"] = {
                        "session_id": session.session_id,
                        "payment_reference": session.payment_reference,
                        "amount_minor": session.amount,
                        "currency": session.currency,
                    }
                return service_ok(summary), created

            if not (ledger.seller_accepted and ledger.buyer_accepted):
                return (
                    service_err(ErrorCodes.NOT_READY_FOR_PAYMENT, "The deal has not been accepted by both parties"),
                    created,
                )

            mismatch = self._capture_mismatch(ledger, session)
            if mismatch:
                self.logger.error(f"Refusing to finalize ledger {ledger.pk} from session {session.session_id}: {mismatch}")
                return service_err(ErrorCodes.SESSION_MISMATCH, mismatch), created

            now = timezone.now()
            ledger.is_paid = True
            ledger.paid_at = now
            ledger.status = "closed"
            ledger.closed_at = ledger.closed_at or now
            ledger.close_reason = "payment_completed"
            ledger.payment_reference = session.payment_reference or session.session_id
            ledger.checkout_session_id = session.session_id
            ledger.invoice_number = generate_invoice_number()
            ledger.save()

            payment_transaction, delivery, created = self._ensure_records(ledger, listing, session.currency)
            self.logger.info(
                f"Ledger {ledger.pk} paid: invoice {ledger.invoice_number}, tracking {delivery.tracking_number}"
            )
            return service_ok(self._summary(ledger, payment_transaction, delivery, already_paid=False)), created

    def _capture_mismatch(self, ledger, session: CheckoutSession):
        """Describe how the captured payment differs from the deal, or return None."""
        expected = to_minor_units(ledger.highest_bid)
        if session.amount != expected:
            return f"Checkout session captured {session.amount} minor units, the deal is {expected}"
        if (session.currency or "").lower() != self.currency:
            return f"Checkout session was paid in {session.currency}, the deal is in {self.currency}"
        return None

    def _resolve_ledger(self, listing, buyer, metadata):
        """
        Find the ledger this payment settles: by (listing, buyer), then by the
        session's ledger id, then by the listing's accepted ledger. Locks it.
        """
        locked = AuctionLedger.objects.select_for_update().select_related("seller", "buyer")

        ledger = locked.filter(listing=listing, buyer=buyer).first()
        if ledger is not None:
            return ledger, None

        ledger_id = metadata.get("ledger_id")
        if ledger_id:
            try:
                ledger = locked.filter(pk=ledger_id).first()
            except (ValidationError, ValueError):
                ledger = None
            if ledger is not None:
                if ledger.listing_id != listing.pk:
                    return None, service_err(ErrorCodes.SESSION_MISMATCH, "Checkout session belongs to a different listing")
                if ledger.buyer_id != buyer.pk:
                    return None, service_err(ErrorCodes.BUYER_MISMATCH, "This payment belongs to a different buyer")
                return ledger, None

        ledger = locked.filter(listing=listing, seller_accepted=True).first()
        if ledger is None:
            return None, service_err(ErrorCodes.LEDGER_NOT_FOUND, f"No accepted auction exists for listing {listing.pk}")
        if ledger.buyer_id != buyer.pk:
            return None, service_err(ErrorCodes.BUYER_MISMATCH, "This payment belongs to a different buyer")
        return ledger, None

    def _ensure_records(self, ledger, listing, currency=None):
        """
        Create whichever of the transaction and delivery is missing for a paid
        ledger. Runs under the ledger lock.
        """
        created = {"transaction": None, "delivery": None}

        payment_transaction = PaymentTransaction.objects.filter(ledger=ledger).first()
        if payment_transaction is None:
            if not ledger.invoice_number:
                ledger.invoice_number = generate_invoice_number()
                ledger.save(update_fields=["invoice_number", "updated_at"])
            payment_transaction = PaymentTransaction.objects.create(
                ledger=ledger,
                listing=listing,
                seller=ledger.seller,
                buyer=ledger.buyer,
                amount=ledger.highest_bid,
                currency=(currency or self.currency).lower(),
                status="completed",
                invoice_number=ledger.invoice_number,
                payment_reference=ledger.payment_reference,
                checkout_session_id=ledger.checkout_session_id,
                transaction_date=ledger.paid_at or timezone.now(),
            )
            created["transaction"] = payment_transaction

        delivery = Delivery.objects.filter(listing=listing).first()
        if delivery is None:
            delivery = self.delivery_service.create_for_sale(listing, ledger.seller, ledger.buyer)
            created["delivery"] = delivery

        return payment_transaction, delivery, created

    def _summary(self, ledger, payment_transaction, delivery, already_paid: bool) -> dict:
        return {
            "ledger_id": str(ledger.pk),
            "listing_id": str(ledger.listing_id),
            "already_paid": already_paid,
            "invoice_number": ledger.invoice_number,
            "paid_at": ledger.paid_at,
            "transaction": transaction_summary(payment_transaction),
            "delivery": delivery_summary(delivery),
        }

    # ------------------------------------------------------------------
    # After commit
    # ------------------------------------------------------------------

    def _notify_parties(self, payment_transaction) -> dict:
        try:
            buyer_identity = self.identity_service.get(payment_transaction.buyer_id)
            seller_identity = self.identity_service.get(payment_transaction.seller_id)
        except DatabaseError as e:
            self.logger.error(f"Skipping invoice emails for {payment_transaction.invoice_number}: {str(e)}")
            return {"buyer": False, "seller": False}
        if buyer_identity is None or seller_identity is None:
            self.logger.warning(f"Skipping invoice emails for {payment_transaction.invoice_number}: party not found")
            return {"buyer": False, "seller": False}
        return self.notification_service.send_transaction_invoices(payment_transaction, buyer_identity, seller_identity)

    def _publish_completed(self, summary: dict, created: dict):
        txn = summary["transaction"]
        PaymentCompletedEvent(
            ledger_id=summary["ledger_id"],
            listing_id=summary["listing_id"],
            transaction_id=txn["transaction_id"],
            invoice_number=txn["invoice_number"],
            amount=str(txn["amount"]),
            currency=txn["currency"],
            buyer_id=txn["buyer_id"],
            seller_id=txn["seller_id"],
        ).publish_to(self.event_bus)
        self._publish_delivery(summary, created)

    def _publish_delivery(self, summary: dict, created: dict):
        delivery = created.get("delivery")
        if delivery is None:
            return
        DeliveryCreatedEvent(
            delivery_id=str(delivery.pk),
            listing_id=summary["listing_id"],
            tracking_number=delivery.tracking_number,
            buyer_id=str(delivery.buyer_id),
            seller_id=str(delivery.seller_id),
        ).publish_to(self.event_bus)

    def _publish_repaired(self, summary: dict, created: dict):
        if created.get("transaction") is not None:
            records_repaired_total.labels(record="transaction").inc()
        if created.get("delivery") is not None:
            records_repaired_total.labels(record="delivery").inc()
            self._publish_delivery(summary, created)

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def find_incomplete_ledgers(self):
        """Paid ledgers that are missing their transaction or delivery."""
        return AuctionLedger.objects.filter(is_paid=True).filter(
            Q(payment_transaction__isnull=True) | Q(listing__delivery__isnull=True)
        )

    @BaseService.log_performance
    def complete_pending_records(self, ledger_id) -> ServiceResult[dict]:
        """Create any missing transaction or delivery for a paid ledger."""
        try:
            listing_id = AuctionLedger.objects.filter(pk=ledger_id).values_list("listing_id", flat=True).first()
        except (ValidationError, ValueError):
            listing_id = None
        if listing_id is None:
            return service_err(ErrorCodes.LEDGER_NOT_FOUND, f"Ledger {ledger_id} not found")

        result, created = self._complete_locked(listing_id, ledger_id)
        if result.ok:
            self._publish_repaired(result.value, created)
            result.value["repaired"] = {
                "transaction": created["transaction"] is not None,
                "delivery": created["delivery"] is not None,
            }
        return result

    @retry_on_deadlock()
    def _complete_locked(self, listing_id, ledger_id):
        created = {"transaction": None, "delivery": None}
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            ledger = (
                AuctionLedger.objects.select_for_update().select_related("seller", "buyer").filter(pk=ledger_id).first()
            )
            if listing is None or ledger is None:
                return service_err(ErrorCodes.LEDGER_NOT_FOUND, f"Ledger {ledger_id} not found"), created

            if not ledger.is_paid:
                return service_err(ErrorCodes.PAYMENT_NOT_COMPLETED, f"Ledger {ledger_id} has not been paid"), created

            payment_transaction, delivery, created = self._ensure_records(ledger, listing)
            return service_ok(self._summary(ledger, payment_transaction, delivery, already_paid=True)), created

    def complete_all_pending(self, limit: int = None) -> dict:
        """Run the repair over every incomplete paid ledger, up to ``limit``."""
        ledger_ids = list(self.find_incomplete_ledgers().order_by("paid_at").values_list("pk", flat=True))
        if limit is not None:
            ledger_ids = ledger_ids[:limit]

        summary = {"checked": len(ledger_ids), "repaired": [], "failed": []}
        for ledger_id in ledger_ids:
            result = self.complete_pending_records(ledger_id)
            if result.ok:
                summary["repaired"].append(str(ledger_id))
            else:
                self.logger.error(f"Could not complete ledger {ledger_id}: {result.error_detail}")
                summary["failed"].append({"ledger_id": str(ledger_id), "error": result.error})
        return summary
