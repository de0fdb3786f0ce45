import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class PaymentTransaction(models.Model):
    """
    Record of a completed auction payment.

    Exactly one per paid auction ledger, minted by payment reconciliation.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    ledger = models.OneToOneField("auctions.AuctionLedger", on_delete=models.PROTECT, related_name="payment_transaction")
    listing = models.ForeignKey("marketplace.Listing", on_delete=models.PROTECT, related_name="payment_transactions")
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="payment_transactions_as_seller"
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="payment_transactions_as_buyer"
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))])
    currency = models.CharField(max_length=3, default="usd")
    payment_method = models.CharField(max_length=50, default="stripe_checkout")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="completed")

    invoice_number = models.CharField(max_length=64, unique=True)
    payment_reference = models.CharField(max_length=255, blank=True, db_index=True)
    checkout_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    transaction_date = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-transaction_date"]
        app_label = "payment_system"
        indexes = [
            models.Index(fields=["seller", "-transaction_date"], name="payment_txn_seller_date_idx"),
            models.Index(fields=["buyer", "-transaction_date"], name="payment_txn_buyer_date_idx"),
        ]

    def involves(self, user) -> bool:
        return user.pk in (self.seller_id, self.buyer_id)

    def __str__(self):
        return f"{self.invoice_number} ({self.amount} {self.currency.upper()})"
