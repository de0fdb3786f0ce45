"""
Bid floor policies.

A policy answers one question for ``place_bid``: what is the smallest amount
this listing accepts right now? The active policy is chosen by
``AUCTIONS["BID_FLOOR_POLICY"]``.
"""

from abc import ABC, abstractmethod
from decimal import ROUND_UP, Decimal
from typing import Optional

from django.conf import settings


CENT = Decimal("0.01")


class BidFloorPolicy(ABC):
    name = "abstract"

    @abstractmethod
    def minimum_bid(self, listing, ledger) -> Decimal:
        """Smallest acceptable amount. ``ledger`` is None before the first bid."""

    def rejection_reason(self, listing, ledger, amount: Decimal) -> Optional[str]:
        minimum = self.minimum_bid(listing, ledger)
        if amount < minimum:
            return f"Bid must be at least {minimum:.2f}"
        return None


class NoFloor(BidFloorPolicy):
    name = "none"

    def minimum_bid(self, listing, ledger) -> Decimal:
        return CENT


class PercentageOfPrice(BidFloorPolicy):
    """Every bid must reach a fixed share of the asking price."""

    name = "percentage_of_price"

    def __init__(self, fraction: Decimal = Decimal("0.5")):
        self.fraction = Decimal(fraction)

    def minimum_bid(self, listing, ledger) -> Decimal:
        return max(CENT, (listing.price * self.fraction).quantize(CENT, rounding=ROUND_UP))


class IncrementOverHighest(BidFloorPolicy):
    """A new bid must beat the current highest bid by the ledger's increment."""

    name = "increment_over_highest"

    def __init__(self, increment: Decimal = Decimal("1")):
        self.increment = Decimal(increment)

    def minimum_bid(self, listing, ledger) -> Decimal:
        if ledger is None or ledger.highest_bid <= 0:
            return CENT
        increment = ledger.minimum_bid_increment or self.increment
        return ledger.highest_bid + increment


def build_bid_floor_policy(config: Optional[dict] = None) -> BidFloorPolicy:
    config = config if config is not None else getattr(settings, "AUCTIONS", {})
    name = config.get("BID_FLOOR_POLICY", "percentage_of_price")

    if name == NoFloor.name:
        return NoFloor()
    if name == PercentageOfPrice.name:
        return PercentageOfPrice(Decimal(str(config.get("BID_FLOOR_FRACTION", "0.5"))))
    if name == IncrementOverHighest.name:
        return IncrementOverHighest(Decimal(str(config.get("BID_INCREMENT", "1"))))
    raise ValueError(
        f"Invalid bid floor policy: {name}. Must be 'none', 'percentage_of_price' or 'increment_over_highest'"
    )
