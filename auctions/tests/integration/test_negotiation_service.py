from decimal import Decimal

import pytest

from auctions.models import AuctionLedger
from marketplace.models import Delivery
from marketplace.services import ErrorCodes
from marketplace.tests.factories import ListingFactory, UserFactory
from payment_system.models import PaymentTransaction


pytestmark = [pytest.mark.django_db, pytest.mark.integration]


@pytest.fixture
def auctions(test_container):
    return test_container.auction_service()


@pytest.fixture
def negotiation(test_container):
    return test_container.negotiation_service()


@pytest.fixture
def listing():
    return ListingFactory(price=Decimal("100.00"))


@pytest.fixture
def bidders(auctions, listing):
    """Two bidders with 70.00 and 80.00 on the listing."""
    first, second = UserFactory(), UserFactory()
    auctions.place_bid(listing.pk, first, "70.00")
    auctions.place_bid(listing.pk, second, "80.00")
    return first, second


class TestSelectBuyer:
    def test_select_marks_seller_acceptance(self, negotiation, listing, bidders):
        _, second = bidders

        result = negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        assert result.ok
        assert result.value["buyer_id"] == str(second.pk)
        assert result.value["seller_accepted"] is True
        assert result.value["negotiation_state"] == "winner_selected"
        assert result.value["closed_now"] is False
        listing.refresh_from_db()
        assert listing.status == "open"

    def test_seller_may_pick_a_lower_bid(self, negotiation, listing, bidders):
        first, _ = bidders

        result = negotiation.select_buyer(listing.pk, listing.seller, first.pk)

        assert result.ok
        assert result.value["selected_bid"] == Decimal("70.00")

    def test_only_seller_selects(self, negotiation, listing, bidders):
        first, second = bidders
        result = negotiation.select_buyer(listing.pk, first, second.pk)
        assert result.error == ErrorCodes.NOT_SELLER

    def test_unknown_bidder(self, negotiation, listing, bidders):
        result = negotiation.select_buyer(listing.pk, listing.seller, UserFactory().pk)
        assert result.error == ErrorCodes.BIDDER_NOT_FOUND

    def test_without_ledger(self, negotiation, listing):
        result = negotiation.select_buyer(listing.pk, listing.seller, UserFactory().pk)
        assert result.error == ErrorCodes.LEDGER_NOT_FOUND

    def test_without_bids(self, auctions, negotiation, listing):
        bidder = UserFactory()
        auctions.place_bid(listing.pk, bidder, "70.00")
        auctions.withdraw_bid(listing.pk, bidder)

        result = negotiation.select_buyer(listing.pk, listing.seller, bidder.pk)

        assert result.error == ErrorCodes.NO_BIDS

    def test_bidding_stops_once_winner_selected(self, auctions, negotiation, listing, bidders):
        first, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        assert auctions.place_bid(listing.pk, UserFactory(), "99.00").error == ErrorCodes.AUCTION_CLOSED
        assert auctions.withdraw_bid(listing.pk, first).error == ErrorCodes.AUCTION_CLOSED

    def test_reselecting_clears_previous_buyer_acceptance(self, negotiation, listing, bidders):
        first, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, first.pk)
        AuctionLedger.objects.filter(listing=listing).update(buyer_accepted=True, seller_accepted=False)

        result = negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        assert result.ok
        assert result.value["buyer_accepted"] is False
        assert result.value["closed_now"] is False


class TestAcceptance:
    def test_seller_then_buyer_closes_once(self, negotiation, listing, bidders, event_bus):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        result = negotiation.buyer_accept_deal(listing.pk, second)

        assert result.ok
        assert result.value["closed_now"] is True
        assert result.value["status"] == "closed"
        assert result.value["close_reason"] == "buyer_selected"
        listing.refresh_from_db()
        assert listing.status == "closed"
        assert listing.buyer_id == second.pk
        assert listing.final_price == Decimal("80.00")
        assert len(event_bus.events_of_type("auction.closed")) == 1

    def test_repeated_accept_is_a_noop(self, negotiation, listing, bidders, event_bus):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        negotiation.buyer_accept_deal(listing.pk, second)

        again = negotiation.buyer_accept_deal(listing.pk, second)

        assert again.ok
        assert again.value["closed_now"] is False
        assert again.value["status"] == "closed"
        assert len(event_bus.events_of_type("auction.closed")) == 1

    def test_buyer_first_then_seller_closes_once(self, negotiation, listing, bidders, event_bus):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        # Buyer acceptance recorded before the seller's confirmation
        AuctionLedger.objects.filter(listing=listing).update(seller_accepted=False, buyer_accepted=True)

        result = negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        assert result.ok
        assert result.value["closed_now"] is True
        assert result.value["final_price"] == Decimal("80.00")
        assert len(event_bus.events_of_type("auction.closed")) == 1
        assert negotiation.select_buyer(listing.pk, listing.seller, second.pk).error == ErrorCodes.ALREADY_CLOSED

    def test_only_selected_buyer_accepts(self, negotiation, listing, bidders):
        first, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        result = negotiation.buyer_accept_deal(listing.pk, first)

        assert result.error == ErrorCodes.NOT_SELECTED_BUYER

    def test_accept_after_seller_cancel(self, auctions, negotiation, listing, bidders):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        auctions.close_manually(listing.pk, listing.seller)

        result = negotiation.buyer_accept_deal(listing.pk, second)

        assert result.error == ErrorCodes.ALREADY_CLOSED

    def test_accept_after_payment(self, negotiation, listing, bidders):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        negotiation.buyer_accept_deal(listing.pk, second)
        AuctionLedger.objects.filter(listing=listing).update(is_paid=True)

        result = negotiation.buyer_accept_deal(listing.pk, second)

        assert result.error == ErrorCodes.ALREADY_COMPLETED

    def test_acceptance_never_mints_records(self, negotiation, listing, bidders):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        negotiation.buyer_accept_deal(listing.pk, second)

        assert not PaymentTransaction.objects.exists()
        assert not Delivery.objects.exists()


class TestStatus:
    def test_status_for_selected_buyer(self, negotiation, listing, bidders):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        result = negotiation.get_status(listing.pk, second)

        assert result.ok
        assert result.value["role"] == "buyer"
        assert result.value["can_pay"] is True
        assert result.value["awaiting_payment"] is False

    def test_status_awaiting_payment_after_both_accept(self, negotiation, listing, bidders):
        _, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)
        negotiation.buyer_accept_deal(listing.pk, second)

        seller_view = negotiation.get_status(listing.pk, listing.seller)

        assert seller_view.value["role"] == "seller"
        assert seller_view.value["awaiting_payment"] is True
        assert seller_view.value["can_pay"] is False
        assert seller_view.value["final_price"] == Decimal("80.00")

    def test_status_forbidden_for_other_bidders(self, negotiation, listing, bidders):
        first, second = bidders
        negotiation.select_buyer(listing.pk, listing.seller, second.pk)

        result = negotiation.get_status(listing.pk, first)

        assert result.error == ErrorCodes.FORBIDDEN
