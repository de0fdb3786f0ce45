"""
Response Serializers for Marketplace API Documentation

Shared error shape plus the delivery resources. The error serializer is only
used for OpenAPI generation; the delivery serializers also render responses.
"""

from rest_framework import serializers

from marketplace.ordering.domain.models import Delivery, DeliveryStatusHistory


# ===== Common Response Serializers =====


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    error = serializers.CharField(help_text="Error code identifier")
    message = serializers.CharField(help_text="Human-readable error message")
    retryable = serializers.BooleanField(help_text="Whether retrying the request may succeed")


# ===== Delivery Serializers =====


class DeliveryStatusHistorySerializer(serializers.ModelSerializer):
    updated_by = serializers.UUIDField(source="updated_by_id", read_only=True, allow_null=True)

    class Meta:
        model = DeliveryStatusHistory
        fields = ["status", "notes", "updated_by", "timestamp"]


class DeliverySerializer(serializers.ModelSerializer):
    listing_id = serializers.UUIDField(read_only=True)
    listing_title = serializers.CharField(source="listing.title", read_only=True)
    seller_id = serializers.UUIDField(read_only=True)
    buyer_id = serializers.UUIDField(read_only=True)
    delivery_partner_id = serializers.UUIDField(read_only=True, allow_null=True)
    status_history = DeliveryStatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Delivery
        fields = [
            "id",
            "listing_id",
            "listing_title",
            "seller_id",
            "buyer_id",
            "delivery_partner_id",
            "tracking_number",
            "status",
            "expected_delivery_date",
            "delivered_at",
            "delivery_notes",
            "status_history",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DeliveryStatusUpdateRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[choice for choice, _ in Delivery.STATUS_CHOICES], help_text="Next delivery status"
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="", help_text="Optional status note")
