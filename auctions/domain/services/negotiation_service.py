"""
NegotiationService - seller selection and buyer acceptance.

States: open -> winner_selected -> closed -> paid, plus the seller's manual
cancel edge handled by AuctionService.close_manually. The close transition
fires exactly once, from whichever of select_buyer / buyer_accept_deal
completes the mutual acceptance.
"""

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from auctions.domain.events import AuctionClosedEvent
from auctions.domain.models import AuctionLedger
from auctions.domain.services.auction_service import ledger_snapshot, lock_ledger
from auctions.infra.observability.metrics import auctions_closed_total
from infrastructure.observability import add_span_attributes, tracer
from marketplace.catalog.domain.services import ListingStore
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import retry_on_deadlock


class NegotiationService(BaseService):
    def __init__(self, listing_store: ListingStore = None, event_bus=None):
        super().__init__()
        self.listing_store = listing_store or ListingStore()
        self.event_bus = event_bus

    def _close_with_buyer(self, ledger, listing, seller):
        """Close a mutually accepted ledger and mirror the sale into the listing."""
        selected_bid = ledger.bids.filter(bidder_id=ledger.buyer_id).first()
        final_price = selected_bid.amount if selected_bid is not None else ledger.highest_bid

        ledger.status = "closed"
        ledger.close_reason = "buyer_selected"
        ledger.closed_at = timezone.now()
        self.listing_store.set_closed(listing.pk, buyer=ledger.buyer, final_price=final_price, updated_by=seller)
        return final_price

    def _after_close(self, snapshot, final_price):
        auctions_closed_total.labels(reason="buyer_selected").inc()
        AuctionClosedEvent(
            ledger_id=snapshot["ledger_id"],
            listing_id=snapshot["listing_id"],
            reason="buyer_selected",
            buyer_id=snapshot["buyer_id"],
            final_price=str(final_price),
        ).publish_to(self.event_bus)

    @BaseService.log_performance
    def select_buyer(self, listing_id, seller, bidder_id) -> ServiceResult[dict]:
        """
        Seller picks a winner among the current bidders.

        Selecting a different bidder clears the previous bidder's acceptance.
        """
        with tracer.start_as_current_span("negotiation_select_buyer") as span:
            add_span_attributes(span, listing_id=listing_id, bidder_id=bidder_id)
            result = self._select_buyer_locked(listing_id, seller, bidder_id)

        if result.ok and result.value["closed_now"]:
            self._after_close(result.value, result.value["final_price"])
        return result

    @retry_on_deadlock()
    def _select_buyer_locked(self, listing_id, seller, bidder_id) -> ServiceResult[dict]:
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

            ledger = lock_ledger(listing)
            if ledger is None:
                return service_err(ErrorCodes.LEDGER_NOT_FOUND, "No auction exists for this listing")

            if seller.pk != ledger.seller_id:
                return service_err(ErrorCodes.NOT_SELLER, "Only the seller can select a buyer")

            if ledger.status == "closed":
                return service_err(ErrorCodes.ALREADY_CLOSED, "This auction is already closed")

            if not ledger.bids.exists():
                return service_err(ErrorCodes.NO_BIDS, "There are no bids to select from")

            try:
                bid = ledger.bids.select_related("bidder").filter(bidder_id=bidder_id).first()
            except (ValidationError, ValueError):
                bid = None
            if bid is None:
                return service_err(ErrorCodes.BIDDER_NOT_FOUND, "The selected user has no bid on this listing")

            if ledger.buyer_id is not None and ledger.buyer_id != bid.bidder_id:
                self.logger.info(f"Auction {ledger.pk}: buyer changed from {ledger.buyer_id} to {bid.bidder_id}")
                ledger.buyer_accepted = False

            ledger.buyer = bid.bidder
            ledger.seller_accepted = True

            closed_now = False
            final_price = None
            if ledger.buyer_accepted:
                final_price = self._close_with_buyer(ledger, listing, seller)
                closed_now = True

            ledger.save()

            snapshot = ledger_snapshot(ledger)
            snapshot.update({"closed_now": closed_now, "final_price": final_price, "selected_bid": bid.amount})
            return service_ok(snapshot)

    @BaseService.log_performance
    def buyer_accept_deal(self, listing_id, buyer) -> ServiceResult[dict]:
        """
        Selected buyer confirms the deal. Repeating the call is a successful no-op.
        """
        with tracer.start_as_current_span("negotiation_buyer_accept") as span:
            add_span_attributes(span, listing_id=listing_id, buyer_id=buyer.pk)
            result = self._buyer_accept_locked(listing_id, buyer)

        if result.ok and result.value["closed_now"]:
            self._after_close(result.value, result.value["final_price"])
        return result

    @retry_on_deadlock()
    def _buyer_accept_locked(self, listing_id, buyer) -> ServiceResult[dict]:
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

            ledger = lock_ledger(listing)
            if ledger is None:
                return service_err(ErrorCodes.LEDGER_NOT_FOUND, "No auction exists for this listing")

            if ledger.buyer_id is None or ledger.buyer_id != buyer.pk:
                return service_err(ErrorCodes.NOT_SELECTED_BUYER, "Only the selected buyer can accept this deal")

            if ledger.is_paid:
                return service_err(ErrorCodes.ALREADY_COMPLETED, "This deal has already been paid")

            if ledger.status == "closed" and ledger.close_reason != "buyer_selected":
                return service_err(ErrorCodes.ALREADY_CLOSED, "This auction was closed by the seller")

            if ledger.buyer_accepted:
                snapshot = ledger_snapshot(ledger)
                snapshot.update({"closed_now": False, "final_price": listing.final_price})
                return service_ok(snapshot)

            ledger.buyer_accepted = True
            closed_now = False
            final_price = None
            if ledger.seller_accepted:
                final_price = self._close_with_buyer(ledger, listing, ledger.seller)
                closed_now = True

            ledger.save()

            snapshot = ledger_snapshot(ledger)
            snapshot.update({"closed_now": closed_now, "final_price": final_price})
            return service_ok(snapshot)

    @BaseService.log_performance
    def get_status(self, listing_id, caller) -> ServiceResult[dict]:
        listing = self.listing_store.get(listing_id)
        if listing is None:
            return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

        ledger = AuctionLedger.objects.filter(listing=listing).first()
        if ledger is None:
            return service_err(ErrorCodes.LEDGER_NOT_FOUND, "No auction exists for this listing")

        if caller.pk not in (ledger.seller_id, ledger.buyer_id):
            return service_err(ErrorCodes.FORBIDDEN, "Only the buyer or seller can view the negotiation status")

        is_buyer = caller.pk == ledger.buyer_id
        snapshot = ledger_snapshot(ledger)
        snapshot.update(
            {
                "role": "buyer" if is_buyer else "seller",
                "awaiting_payment": ledger.ready_for_payment,
                "can_pay": is_buyer and ledger.seller_accepted,
                "final_price": listing.final_price,
            }
        )
        return service_ok(snapshot)

