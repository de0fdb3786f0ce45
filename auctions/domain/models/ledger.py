import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Max

from marketplace.catalog.domain.models import Listing


def default_bid_increment() -> Decimal:
    return Decimal(str(getattr(settings, "AUCTIONS", {}).get("BID_INCREMENT", "1")))


class AuctionLedger(models.Model):
    """
    Bid book and negotiation state for one listing.

    Created lazily with the first accepted bid and never deleted.
    """

    STATUS_CHOICES = [
        ("open", "Open"),
        ("closed", "Closed"),
    ]

    CLOSE_REASON_CHOICES = [
        ("buyer_selected", "Buyer Selected"),
        ("auction_ended", "Auction Ended"),
        ("seller_cancelled", "Seller Cancelled"),
        ("payment_completed", "Payment Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    listing = models.OneToOneField(Listing, on_delete=models.PROTECT, related_name="auction_ledger")
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="auction_ledgers")
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="won_auction_ledgers",
    )

    highest_bid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    minimum_bid_increment = models.DecimalField(max_digits=10, decimal_places=2, default=default_bid_increment)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="open")
    seller_accepted = models.BooleanField(default=False)
    buyer_accepted = models.BooleanField(default=False)
    close_reason = models.CharField(max_length=20, choices=CLOSE_REASON_CHOICES, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    # Payment
    is_paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_reference = models.CharField(max_length=255, blank=True)
    checkout_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    invoice_number = models.CharField(max_length=64, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "auctions"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(is_paid=False) | models.Q(status="closed"),
                name="auction_ledger_paid_implies_closed",
            ),
            models.CheckConstraint(
                condition=models.Q(highest_bid__gte=0),
                name="auction_ledger_highest_bid_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["is_paid", "status"], name="auction_ledger_paid_idx"),
        ]

    @property
    def negotiation_state(self) -> str:
        if self.is_paid:
            return "paid"
        if self.status == "closed":
            return "closed"
        if self.buyer_id is not None and self.seller_accepted:
            return "winner_selected"
        return "open"

    @property
    def is_open_for_bidding(self) -> bool:
        return self.negotiation_state == "open"

    @property
    def ready_for_payment(self) -> bool:
        return self.seller_accepted and self.buyer_accepted and not self.is_paid

    def recompute_highest_bid(self) -> Decimal:
        """Refresh the cached maximum from the bid rows. Caller saves the ledger."""
        highest = self.bids.aggregate(highest=Max("amount"))["highest"]
        self.highest_bid = highest if highest is not None else Decimal("0.00")
        return self.highest_bid

    def __str__(self):
        return f"Auction for {self.listing_id} ({self.negotiation_state})"


class Bid(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ledger = models.ForeignKey(AuctionLedger, on_delete=models.CASCADE, related_name="bids")
    bidder = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bids")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    placed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["placed_at", "id"]
        app_label = "auctions"
        constraints = [
            models.UniqueConstraint(fields=["ledger", "bidder"], name="auction_bid_one_active_per_bidder"),
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="auction_bid_amount_positive"),
        ]

    def __str__(self):
        return f"{self.bidder_id} bid {self.amount} on {self.ledger_id}"
