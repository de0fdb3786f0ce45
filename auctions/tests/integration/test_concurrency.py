from decimal import Decimal

import pytest
from django.db.models import Max

from auctions.models import AuctionLedger, Bid
from marketplace.services import ErrorCodes
from marketplace.tests.factories import ListingFactory, UserFactory


pytestmark = [pytest.mark.django_db(transaction=True), pytest.mark.integration]


@pytest.fixture
def auctions(test_container):
    return test_container.auction_service()


@pytest.fixture
def negotiation(test_container):
    return test_container.negotiation_service()


@pytest.fixture
def listing():
    return ListingFactory(price=Decimal("100.00"))


class TestConcurrentBids:
    def test_parallel_bids_keep_highest_bid_in_step(self, auctions, listing, run_concurrently, event_bus):
        amounts = ["61.00", "75.50", "90.00", "68.25", "83.00", "99.99"]
        bidders = [UserFactory() for _ in amounts]

        results = run_concurrently(
            *[lambda b=bidder, a=amount: auctions.place_bid(listing.pk, b, a) for bidder, amount in zip(bidders, amounts)]
        )

        assert all(result.ok for result in results)
        assert AuctionLedger.objects.filter(listing=listing).count() == 1
        ledger = AuctionLedger.objects.get(listing=listing)
        assert ledger.bids.count() == len(amounts)
        assert ledger.highest_bid == Decimal("99.99")
        assert ledger.highest_bid == ledger.bids.aggregate(top=Max("amount"))["top"]
        assert len(event_bus.events_of_type("auction.bid_placed")) == len(amounts)

    def test_same_bidder_racing_itself_gets_one_bid(self, auctions, listing, run_concurrently):
        bidder = UserFactory()

        results = run_concurrently(
            lambda: auctions.place_bid(listing.pk, bidder, "70.00"),
            lambda: auctions.place_bid(listing.pk, bidder, "80.00"),
        )

        assert sorted(result.ok for result in results) == [False, True]
        rejected = next(result for result in results if not result.ok)
        assert rejected.error == ErrorCodes.DUPLICATE_BID
        assert Bid.objects.filter(ledger__listing=listing, bidder=bidder).count() == 1

    def test_withdraw_racing_new_bid_leaves_consistent_highest(self, auctions, listing, run_concurrently):
        leader, challenger = UserFactory(), UserFactory()
        assert auctions.place_bid(listing.pk, leader, "90.00").ok

        results = run_concurrently(
            lambda: auctions.withdraw_bid(listing.pk, leader),
            lambda: auctions.place_bid(listing.pk, challenger, "65.00"),
        )

        assert all(result.ok for result in results)
        ledger = AuctionLedger.objects.get(listing=listing)
        assert list(ledger.bids.values_list("bidder_id", flat=True)) == [challenger.pk]
        assert ledger.highest_bid == Decimal("65.00")


class TestConcurrentNegotiation:
    def test_reselect_racing_acceptance_closes_at_most_once(self, auctions, negotiation, listing, run_concurrently, event_bus):
        chosen, other = UserFactory(), UserFactory()
        auctions.place_bid(listing.pk, chosen, "80.00")
        auctions.place_bid(listing.pk, other, "70.00")
        assert negotiation.select_buyer(listing.pk, listing.seller, chosen.pk).ok

        select_result, accept_result = run_concurrently(
            lambda: negotiation.select_buyer(listing.pk, listing.seller, other.pk),
            lambda: negotiation.buyer_accept_deal(listing.pk, chosen),
        )

        ledger = AuctionLedger.objects.get(listing=listing)
        closed_events = event_bus.events_of_type("auction.closed")
        if accept_result.ok:
            # Acceptance won: the deal closed with the buyer who accepted
            assert select_result.error == ErrorCodes.ALREADY_CLOSED
            assert ledger.status == "closed"
            assert ledger.buyer_id == chosen.pk
            assert len(closed_events) == 1
        else:
            # Reselection won: the old buyer can no longer accept
            assert select_result.ok
            assert accept_result.error == ErrorCodes.NOT_SELECTED_BUYER
            assert ledger.status != "closed"
            assert ledger.buyer_id == other.pk
            assert ledger.buyer_accepted is False
            assert closed_events == []

    def test_repeat_select_racing_acceptance_closes_once(self, auctions, negotiation, listing, run_concurrently, event_bus):
        buyer = UserFactory()
        auctions.place_bid(listing.pk, buyer, "80.00")
        assert negotiation.select_buyer(listing.pk, listing.seller, buyer.pk).ok

        select_result, accept_result = run_concurrently(
            lambda: negotiation.select_buyer(listing.pk, listing.seller, buyer.pk),
            lambda: negotiation.buyer_accept_deal(listing.pk, buyer),
        )

        assert accept_result.ok
        assert select_result.ok or select_result.error == ErrorCodes.ALREADY_CLOSED
        ledger = AuctionLedger.objects.get(listing=listing)
        assert ledger.status == "closed"
        assert ledger.close_reason == "buyer_selected"
        assert len(event_bus.events_of_type("auction.closed")) == 1
        listing.refresh_from_db()
        assert listing.final_price == Decimal("80.00")
