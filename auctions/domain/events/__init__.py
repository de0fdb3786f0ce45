from .definitions import AuctionClosedEvent, BidPlacedEvent


__all__ = ["AuctionClosedEvent", "BidPlacedEvent"]
