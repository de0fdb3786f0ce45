"""
AuctionService - the per-listing bid book.

Every mutation runs inside one transaction that locks the listing row and
then the ledger row, in that order, so concurrent bids on the same listing
are serialized and ``highest_bid`` always equals the maximum active bid.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from auctions.domain.events import AuctionClosedEvent, BidPlacedEvent
from auctions.domain.models import AuctionLedger, Bid
from auctions.domain.services.bid_policy import BidFloorPolicy, build_bid_floor_policy
from auctions.infra.observability.metrics import (
    auctions_closed_total,
    bid_amount,
    bids_placed_total,
    bids_rejected_total,
    bids_withdrawn_total,
)
from infrastructure.observability import add_span_attributes, tracer
from marketplace.catalog.domain.services import ListingStore
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import retry_on_deadlock


CENT = Decimal("0.01")
MAX_BID = Decimal("10000000000")  # fits DecimalField(max_digits=12, decimal_places=2)

MANUAL_CLOSE_REASONS = ("seller_cancelled", "auction_ended")


def parse_bid_amount(raw) -> Optional[Decimal]:
    """
    Return ``raw`` as a two-place Decimal, or None when it is not a positive,
    finite number with at most two decimal places.
    """
    if raw is None or isinstance(raw, bool):
        return None
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite() or amount <= 0 or amount >= MAX_BID:
        return None
    if amount.as_tuple().exponent < -2:
        return None
    return amount.quantize(CENT)


def bid_snapshot(bid: Bid) -> dict:
    return {
        "bid_id": str(bid.pk),
        "bidder_id": str(bid.bidder_id),
        "amount": bid.amount,
        "placed_at": bid.placed_at,
    }


def ledger_snapshot(ledger: AuctionLedger, include_bids: bool = False) -> dict:
    data = {
        "ledger_id": str(ledger.pk),
        "listing_id": str(ledger.listing_id),
        "seller_id": str(ledger.seller_id),
        "buyer_id": str(ledger.buyer_id) if ledger.buyer_id else None,
        "status": ledger.status,
        "negotiation_state": ledger.negotiation_state,
        "highest_bid": ledger.highest_bid,
        "total_bids": ledger.bids.count(),
        "seller_accepted": ledger.seller_accepted,
        "buyer_accepted": ledger.buyer_accepted,
        "close_reason": ledger.close_reason or None,
        "closed_at": ledger.closed_at,
        "is_paid": ledger.is_paid,
        "invoice_number": ledger.invoice_number or None,
    }
    if include_bids:
        data["bids"] = [bid_snapshot(bid) for bid in ledger.bids.all()]
    return data


def lock_ledger(listing) -> Optional[AuctionLedger]:
    """Lock the ledger of an already locked listing. Returns None when no bid was ever accepted."""
    return AuctionLedger.objects.select_for_update().filter(listing=listing).first()


class AuctionService(BaseService):
    """
    Service for placing, withdrawing and reading bids.
    """

    def __init__(self, listing_store: ListingStore = None, bid_policy: BidFloorPolicy = None, event_bus=None):
        super().__init__()
        self.listing_store = listing_store or ListingStore()
        self.bid_policy = bid_policy or build_bid_floor_policy()
        self.event_bus = event_bus

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def place_bid(self, listing_id, bidder, amount) -> ServiceResult[dict]:
        """
        Append a bid for ``bidder`` and refresh the highest bid.

        Bidding is only possible while the listing is open and no winner has
        been selected. A bidder holds at most one active bid per listing.
        """
        with tracer.start_as_current_span("auction_place_bid") as span:
            add_span_attributes(span, listing_id=listing_id, bidder_id=bidder.pk)
            result = self._place_bid_locked(listing_id, bidder, amount)

        if not result.ok:
            bids_rejected_total.labels(reason=result.error).inc()
            return result

        bids_placed_total.inc()
        bid_amount.observe(float(result.value["bid"]["amount"]))
        BidPlacedEvent(
            ledger_id=result.value["ledger_id"],
            listing_id=result.value["listing_id"],
            bidder_id=str(bidder.pk),
            amount=str(result.value["bid"]["amount"]),
            highest_bid=str(result.value["highest_bid"]),
        ).publish_to(self.event_bus)
        return result

    @retry_on_deadlock()
    def _place_bid_locked(self, listing_id, bidder, raw_amount) -> ServiceResult[dict]:
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

            ledger = lock_ledger(listing)
            if not listing.is_open or (ledger is not None and not ledger.is_open_for_bidding):
                return service_err(ErrorCodes.AUCTION_CLOSED, "This auction is no longer accepting bids")

            if bidder.pk == listing.seller_id:
                return service_err(ErrorCodes.SELLER_CANNOT_BID, "Sellers cannot bid on their own listing")

            amount = parse_bid_amount(raw_amount)
            if amount is None:
                return service_err(
                    ErrorCodes.INVALID_AMOUNT, "Bid amount must be a positive number with at most two decimal places"
                )

            if ledger is not None and ledger.bids.filter(bidder=bidder).exists():
                return service_err(ErrorCodes.DUPLICATE_BID, "You already have an active bid on this listing")

            reason = self.bid_policy.rejection_reason(listing, ledger, amount)
            if reason:
                return service_err(ErrorCodes.BID_BELOW_MINIMUM, reason)

            if ledger is None:
                ledger = AuctionLedger.objects.create(listing=listing, seller_id=listing.seller_id)
                self.logger.info(f"Opened auction ledger {ledger.pk} for listing {listing.pk}")

            try:
                with transaction.atomic():
                    bid = Bid.objects.create(ledger=ledger, bidder=bidder, amount=amount)
            except IntegrityError:
                return service_err(ErrorCodes.DUPLICATE_BID, "You already have an active bid on this listing")

            ledger.recompute_highest_bid()
            ledger.save(update_fields=["highest_bid", "updated_at"])

            snapshot = ledger_snapshot(ledger)
            snapshot["bid"] = bid_snapshot(bid)
            return service_ok(snapshot)

    @BaseService.log_performance
    def withdraw_bid(self, listing_id, bidder) -> ServiceResult[dict]:
        """Remove the bidder's active bid and refresh the highest bid."""
        with tracer.start_as_current_span("auction_withdraw_bid") as span:
            add_span_attributes(span, listing_id=listing_id, bidder_id=bidder.pk)
            result = self._withdraw_bid_locked(listing_id, bidder)

        if result.ok:
            bids_withdrawn_total.inc()
        return result

    @retry_on_deadlock()
    def _withdraw_bid_locked(self, listing_id, bidder) -> ServiceResult[dict]:
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

            ledger = lock_ledger(listing)
            if not listing.is_open or (ledger is not None and not ledger.is_open_for_bidding):
                return service_err(ErrorCodes.AUCTION_CLOSED, "Bids can no longer be withdrawn from this auction")

            bid = ledger.bids.filter(bidder=bidder).first() if ledger is not None else None
            if bid is None:
                return service_err(ErrorCodes.NO_SUCH_BID, "You have no active bid on this listing")

            withdrawn = bid_snapshot(bid)
            bid.delete()
            ledger.recompute_highest_bid()
            ledger.save(update_fields=["highest_bid", "updated_at"])

            snapshot = ledger_snapshot(ledger)
            snapshot["withdrawn_bid"] = withdrawn
            return service_ok(snapshot)

    @BaseService.log_performance
    def close_manually(self, listing_id, seller, reason: str = "seller_cancelled") -> ServiceResult[dict]:
        """
        Close the auction without a sale. No payment is expected afterwards.
        """
        if reason not in MANUAL_CLOSE_REASONS:
            return service_err(ErrorCodes.VALIDATION_ERROR, f"Reason must be one of {', '.join(MANUAL_CLOSE_REASONS)}")

        with tracer.start_as_current_span("auction_close_manually") as span:
            add_span_attributes(span, listing_id=listing_id, reason=reason)
            result = self._close_manually_locked(listing_id, seller, reason)

        if result.ok:
            auctions_closed_total.labels(reason=reason).inc()
            AuctionClosedEvent(
                ledger_id=result.value["ledger_id"], listing_id=result.value["listing_id"], reason=reason
            ).publish_to(self.event_bus)
        return result

    @retry_on_deadlock()
    def _close_manually_locked(self, listing_id, seller, reason) -> ServiceResult[dict]:
        with transaction.atomic():
            listing = self.listing_store.get_for_update(listing_id)
            if listing is None:
                return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

            ledger = lock_ledger(listing)
            if ledger is None:
                return service_err(ErrorCodes.LEDGER_NOT_FOUND, "No auction exists for this listing")

            if seller.pk != ledger.seller_id:
                return service_err(ErrorCodes.NOT_SELLER, "Only the seller can close this auction")

            if ledger.status == "closed":
                return service_err(ErrorCodes.ALREADY_CLOSED, "This auction is already closed")

            ledger.status = "closed"
            ledger.close_reason = reason
            ledger.closed_at = timezone.now()
            ledger.save(update_fields=["status", "close_reason", "closed_at", "updated_at"])
            self.listing_store.set_closed(listing.pk, updated_by=seller)

            self.logger.info(f"Auction {ledger.pk} closed manually ({reason})")
            return service_ok(ledger_snapshot(ledger))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @BaseService.log_performance
    def get_highest_bid(self, listing_id) -> ServiceResult[dict]:
        listing = self.listing_store.get(listing_id)
        if listing is None:
            return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

        ledger = AuctionLedger.objects.filter(listing=listing).first()
        winning = ledger.bids.order_by("-amount", "placed_at").first() if ledger is not None else None
        if winning is None:
            return service_err(ErrorCodes.NO_BIDS, "No bids have been placed on this listing")

        return service_ok(
            {
                "listing_id": str(listing.pk),
                "highest_bid": ledger.highest_bid,
                "winning_bid": bid_snapshot(winning),
                "total_bids": ledger.bids.count(),
                "auction_status": ledger.status,
                "negotiation_state": ledger.negotiation_state,
            }
        )

    @BaseService.log_performance
    def list_bids(self, listing_id, requester) -> ServiceResult[dict]:
        """All active bids on a listing, highest first."""
        if requester is None or not requester.is_authenticated:
            return service_err(ErrorCodes.FORBIDDEN, "Authentication required")

        listing = self.listing_store.get(listing_id)
        if listing is None:
            return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} not found")

        ledger = AuctionLedger.objects.filter(listing=listing).first()
        if ledger is None:
            return service_ok(
                {
                    "listing_id": str(listing.pk),
                    "bids": [],
                    "total_bids": 0,
                    "highest_bid": Decimal("0.00"),
                    "auction_status": listing.status,
                }
            )

        bids = ledger.bids.select_related("bidder").order_by("-amount", "placed_at")
        return service_ok(
            {
                "listing_id": str(listing.pk),
                "bids": [bid_snapshot(bid) for bid in bids],
                "total_bids": len(bids),
                "highest_bid": ledger.highest_bid,
                "auction_status": ledger.status,
            }
        )

    @BaseService.log_performance
    def bid_history(self, user, page: int = 1, page_size: int = 20) -> ServiceResult[dict]:
        """The user's active bids across every listing, newest first."""
        page = max(1, int(page))
        page_size = min(max(1, int(page_size)), 100)

        queryset = Bid.objects.filter(bidder=user).select_related("ledger", "ledger__listing").order_by("-placed_at")
        total = queryset.count()
        start = (page - 1) * page_size

        results = []
        for bid in queryset[start : start + page_size]:
            ledger = bid.ledger
            results.append(
                {
                    **bid_snapshot(bid),
                    "listing_id": str(ledger.listing_id),
                    "listing_title": ledger.listing.title,
                    "auction_status": ledger.status,
                    "negotiation_state": ledger.negotiation_state,
                    "highest_bid": ledger.highest_bid,
                    "is_winning": bid.amount == ledger.highest_bid,
                    "is_selected_buyer": ledger.buyer_id == user.pk,
                }
            )

        return service_ok({"results": results, "count": total, "page": page, "page_size": page_size})

