from dataclasses import dataclass
from decimal import Decimal

import pytest

from marketplace.tests.factories import ListingFactory, UserFactory


@dataclass
class Deal:
    listing: object
    seller: object
    buyer: object
    runner_up: object

    @property
    def ledger(self):
        from auctions.models import AuctionLedger

        return AuctionLedger.objects.get(listing=self.listing)


@pytest.fixture
def checkout(test_container):
    return test_container.checkout_service()


@pytest.fixture
def reconciliation(test_container):
    return test_container.reconciliation_service()


@pytest.fixture
def accepted_deal(test_container):
    """A listing priced 100.00 with bids of 70.00 and 80.00; the 80.00 bidder is selected and has accepted."""
    listing = ListingFactory(price=Decimal("100.00"))
    runner_up, buyer = UserFactory(), UserFactory()

    auctions = test_container.auction_service()
    auctions.place_bid(listing.pk, runner_up, "70.00")
    auctions.place_bid(listing.pk, buyer, "80.00")

    negotiation = test_container.negotiation_service()
    assert negotiation.select_buyer(listing.pk, listing.seller, buyer.pk).ok
    assert negotiation.buyer_accept_deal(listing.pk, buyer).ok

    listing.refresh_from_db()
    return Deal(listing=listing, seller=listing.seller, buyer=buyer, runner_up=runner_up)


@pytest.fixture
def paid_session(checkout, payment_provider, accepted_deal):
    """A checkout session for the accepted deal that the payer has completed."""
    result = checkout.create_payment_session(accepted_deal.listing.pk, accepted_deal.buyer)
    assert result.ok
    return payment_provider.mark_paid(result.value["session_id"], payment_reference="pi_mock_paid")
