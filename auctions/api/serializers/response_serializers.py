"""
Response serializers for the auction API.

Used for OpenAPI schema generation only; views return the service payloads.
"""

from rest_framework import serializers


class BidSerializer(serializers.Serializer):
    bid_id = serializers.UUIDField()
    bidder_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    placed_at = serializers.DateTimeField()


class LedgerSnapshotSerializer(serializers.Serializer):
    ledger_id = serializers.UUIDField()
    listing_id = serializers.UUIDField()
    seller_id = serializers.UUIDField()
    buyer_id = serializers.UUIDField(allow_null=True)
    status = serializers.ChoiceField(choices=["open", "closed"])
    negotiation_state = serializers.ChoiceField(choices=["open", "winner_selected", "closed", "paid"])
    highest_bid = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_bids = serializers.IntegerField()
    seller_accepted = serializers.BooleanField()
    buyer_accepted = serializers.BooleanField()
    close_reason = serializers.CharField(allow_null=True)
    closed_at = serializers.DateTimeField(allow_null=True)
    is_paid = serializers.BooleanField()
    invoice_number = serializers.CharField(allow_null=True)


class PlaceBidResponseSerializer(LedgerSnapshotSerializer):
    bid = BidSerializer()


class WithdrawBidResponseSerializer(LedgerSnapshotSerializer):
    withdrawn_bid = BidSerializer()


class SelectBuyerResponseSerializer(LedgerSnapshotSerializer):
    closed_now = serializers.BooleanField(help_text="True when this call closed the deal")
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    selected_bid = serializers.DecimalField(max_digits=12, decimal_places=2, help_text="Amount of the selected bid")


class BuyerAcceptResponseSerializer(LedgerSnapshotSerializer):
    closed_now = serializers.BooleanField(help_text="True when this call closed the deal")


class HighestBidResponseSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
    highest_bid = serializers.DecimalField(max_digits=12, decimal_places=2)
    winning_bid = BidSerializer()
    total_bids = serializers.IntegerField()
    auction_status = serializers.CharField()
    negotiation_state = serializers.CharField()


class BidListResponseSerializer(serializers.Serializer):
    listing_id = serializers.UUIDField()
    bids = BidSerializer(many=True)
    total_bids = serializers.IntegerField()
    highest_bid = serializers.DecimalField(max_digits=12, decimal_places=2)
    auction_status = serializers.CharField()


class BidHistoryEntrySerializer(BidSerializer):
    listing_id = serializers.UUIDField()
    listing_title = serializers.CharField()
    auction_status = serializers.CharField()
    negotiation_state = serializers.CharField()
    highest_bid = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_winning = serializers.BooleanField()
    is_selected_buyer = serializers.BooleanField()


class BidHistoryResponseSerializer(serializers.Serializer):
    results = BidHistoryEntrySerializer(many=True)
    count = serializers.IntegerField()
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()


class NegotiationStatusResponseSerializer(LedgerSnapshotSerializer):
    role = serializers.ChoiceField(choices=["buyer", "seller"])
    awaiting_payment = serializers.BooleanField()
    can_pay = serializers.BooleanField()
    final_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
