from auctions.domain.models import AuctionLedger, Bid


__all__ = ["AuctionLedger", "Bid"]
