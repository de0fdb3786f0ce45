from .request_serializers import (
    BidHistoryQuerySerializer,
    CloseAuctionRequestSerializer,
    PlaceBidRequestSerializer,
    SelectBuyerRequestSerializer,
)
from .response_serializers import (
    BidHistoryResponseSerializer,
    BidListResponseSerializer,
    BuyerAcceptResponseSerializer,
    HighestBidResponseSerializer,
    LedgerSnapshotSerializer,
    NegotiationStatusResponseSerializer,
    PlaceBidResponseSerializer,
    SelectBuyerResponseSerializer,
    WithdrawBidResponseSerializer,
)


__all__ = [
    "BidHistoryQuerySerializer",
    "CloseAuctionRequestSerializer",
    "PlaceBidRequestSerializer",
    "SelectBuyerRequestSerializer",
    "BidHistoryResponseSerializer",
    "BidListResponseSerializer",
    "BuyerAcceptResponseSerializer",
    "HighestBidResponseSerializer",
    "LedgerSnapshotSerializer",
    "NegotiationStatusResponseSerializer",
    "PlaceBidResponseSerializer",
    "SelectBuyerResponseSerializer",
    "WithdrawBidResponseSerializer",
]
