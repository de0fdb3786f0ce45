from .ledger import AuctionLedger, Bid


__all__ = ["AuctionLedger", "Bid"]
