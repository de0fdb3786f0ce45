from dataclasses import dataclass

from marketplace.domain.events.base import DomainEvent


@dataclass
class BidPlacedEvent(DomainEvent):
    def __init__(self, ledger_id: str, listing_id: str, bidder_id: str, amount: str, highest_bid: str):
        super().__init__(
            event_type="auction.bid_placed",
            payload={
                "ledger_id": ledger_id,
                "listing_id": listing_id,
                "bidder_id": bidder_id,
                "amount": amount,
                "highest_bid": highest_bid,
            },
        )


@dataclass
class AuctionClosedEvent(DomainEvent):
    """Event: ledger closed, either by mutual acceptance or by the seller."""

    def __init__(self, ledger_id: str, listing_id: str, reason: str, buyer_id: str = None, final_price: str = None):
        super().__init__(
            event_type="auction.closed",
            payload={
                "ledger_id": ledger_id,
                "listing_id": listing_id,
                "reason": reason,
                "buyer_id": buyer_id,
                "final_price": final_price,
            },
        )
