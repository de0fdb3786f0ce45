from rest_framework import serializers


class PlaceBidRequestSerializer(serializers.Serializer):
    # Amount is validated by the auction service so every caller gets the same invalid_amount error
    amount = serializers.CharField(help_text="Bid amount with at most two decimal places, e.g. '80.00'")


class SelectBuyerRequestSerializer(serializers.Serializer):
    bidder_id = serializers.UUIDField(help_text="User id of the bidder to sell to")


class CloseAuctionRequestSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(
        choices=["seller_cancelled", "auction_ended"],
        default="seller_cancelled",
        help_text="Why the seller is closing the auction",
    )


class BidHistoryQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    page_size = serializers.IntegerField(min_value=1, max_value=100, default=20)
