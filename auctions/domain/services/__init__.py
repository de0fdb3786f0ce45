from .auction_service import AuctionService, ledger_snapshot, parse_bid_amount
from .bid_policy import BidFloorPolicy, IncrementOverHighest, NoFloor, PercentageOfPrice, build_bid_floor_policy
from .negotiation_service import NegotiationService


__all__ = [
    "AuctionService",
    "NegotiationService",
    "BidFloorPolicy",
    "NoFloor",
    "PercentageOfPrice",
    "IncrementOverHighest",
    "build_bid_floor_policy",
    "ledger_snapshot",
    "parse_bid_amount",
]
