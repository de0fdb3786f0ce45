"""
Serializers for payment API responses.

PaymentTransactionSerializer renders model instances; the others document
service payloads for OpenAPI.
"""

from rest_framework import serializers

from payment_system.domain.models import PaymentTransaction


class CheckoutSessionResponseSerializer(serializers.Serializer):
    session_id = serializers.CharField(help_text="Provider checkout session id")
    url = serializers.URLField(help_text="Hosted checkout page to redirect the buyer to")
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    ledger_id = serializers.UUIDField()


class TransactionSummarySerializer(serializers.Serializer):
    transaction_id = serializers.UUIDField()
    invoice_number = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    status = serializers.CharField()
    buyer_id = serializers.UUIDField()
    seller_id = serializers.UUIDField()
    transaction_date = serializers.DateTimeField()


class DeliverySummarySerializer(serializers.Serializer):
    delivery_id = serializers.UUIDField()
    tracking_number = serializers.CharField()
    expected_delivery_date = serializers.DateTimeField()
    status = serializers.CharField()


class VerifyCheckoutResponseSerializer(serializers.Serializer):
    ledger_id = serializers.UUIDField()
    listing_id = serializers.UUIDField()
    already_paid = serializers.BooleanField(help_text="True when an earlier call already recorded this payment")
    invoice_number = serializers.CharField()
    paid_at = serializers.DateTimeField()
    transaction = TransactionSummarySerializer()
    delivery = DeliverySummarySerializer()
    notifications = serializers.DictField(
        child=serializers.BooleanField(), required=False, help_text="Invoice email results, first verification only"
    )
    duplicate_capture = serializers.DictField(
        required=False, help_text="A second paid session for an already paid ledger; needs a refund"
    )


class PaymentTransactionSerializer(serializers.ModelSerializer):
    ledger_id = serializers.UUIDField(read_only=True)
    listing_id = serializers.UUIDField(read_only=True)
    listing_title = serializers.CharField(source="listing.title", read_only=True)
    seller_id = serializers.UUIDField(read_only=True)
    buyer_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = PaymentTransaction
        fields = [
            "id",
            "ledger_id",
            "listing_id",
            "listing_title",
            "seller_id",
            "buyer_id",
            "amount",
            "currency",
            "payment_method",
            "status",
            "invoice_number",
            "transaction_date",
            "created_at",
        ]
        read_only_fields = fields


class TransactionListResponseSerializer(serializers.Serializer):
    sales = PaymentTransactionSerializer(many=True)
    purchases = PaymentTransactionSerializer(many=True)


class WebhookResponseSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    event_type = serializers.CharField()
    handled = serializers.BooleanField()
    already_paid = serializers.BooleanField(required=False)
    invoice_number = serializers.CharField(required=False)
