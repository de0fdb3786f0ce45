from rest_framework import serializers


class CheckoutSessionRequestSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField(help_text="Listing whose accepted deal is being paid")
    success_url = serializers.URLField(required=False, help_text="Override the redirect after payment")
    cancel_url = serializers.URLField(required=False, help_text="Override the redirect on cancellation")


class VerifyCheckoutRequestSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField(help_text="Listing the checkout session pays for")
    # Blank is accepted here so the service reports missing_session_reference
    session_id = serializers.CharField(
        required=False, allow_blank=True, default="", help_text="Checkout session id returned by the provider"
    )
