from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from auctions.models import AuctionLedger
from marketplace.tests.factories import ListingFactory, UserFactory


class AuctionViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.listing = ListingFactory(price=Decimal("100.00"))
        self.seller = self.listing.seller
        self.alice = UserFactory(username="alice", email="alice@example.com")
        self.bob = UserFactory(username="bob", email="bob@example.com")

    def url(self, name):
        return reverse(f"auctions:auction-{name}", kwargs={"listing_id": self.listing.pk})

    def place(self, user, amount):
        self.client.force_authenticate(user=user)
        return self.client.post(self.url("place-bid"), {"amount": amount}, format="json")

    def test_requires_authentication(self):
        response = self.client.get(self.url("bids"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_place_bid_returns_snapshot(self):
        response = self.place(self.alice, "80.00")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["highest_bid"], "80.00")
        self.assertEqual(response.data["total_bids"], 1)
        self.assertEqual(response.data["bid"]["amount"], "80.00")

    def test_place_bid_error_statuses(self):
        self.place(self.alice, "80.00")

        duplicate = self.place(self.alice, "85.00")
        self.assertEqual(duplicate.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(duplicate.data["error"], "duplicate_bid")
        self.assertFalse(duplicate.data["retryable"])

        own = self.place(self.seller, "90.00")
        self.assertEqual(own.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(own.data["error"], "seller_cannot_bid")

        invalid = self.place(self.bob, "1.234")
        self.assertEqual(invalid.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(invalid.data["error"], "invalid_amount")

        below = self.place(self.bob, "10.00")
        self.assertEqual(below.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(below.data["error"], "bid_below_minimum")

    def test_list_and_highest(self):
        self.place(self.alice, "70.00")
        self.place(self.bob, "80.00")
        self.client.force_authenticate(user=self.seller)

        bids = self.client.get(self.url("bids"))
        highest = self.client.get(self.url("highest"))

        self.assertEqual(bids.status_code, status.HTTP_200_OK)
        self.assertEqual([bid["amount"] for bid in bids.data["bids"]], ["80.00", "70.00"])
        self.assertEqual(highest.data["winning_bid"]["bidder_id"], str(self.bob.pk))

    def test_highest_without_bids_is_not_found(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.get(self.url("highest"))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "no_bids")

    def test_withdraw(self):
        self.place(self.alice, "70.00")
        self.place(self.bob, "80.00")

        self.client.force_authenticate(user=self.bob)
        response = self.client.post(self.url("withdraw-bid"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["highest_bid"], "70.00")

        again = self.client.post(self.url("withdraw-bid"))
        self.assertEqual(again.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(again.data["error"], "no_such_bid")

    def test_full_negotiation_flow(self):
        self.place(self.alice, "70.00")
        self.place(self.bob, "80.00")

        self.client.force_authenticate(user=self.seller)
        selected = self.client.post(self.url("select-buyer"), {"bidder_id": str(self.bob.pk)}, format="json")
        self.assertEqual(selected.status_code, status.HTTP_200_OK)
        self.assertEqual(selected.data["negotiation_state"], "winner_selected")

        self.client.force_authenticate(user=self.bob)
        accepted = self.client.post(self.url("buyer-accept"))
        self.assertEqual(accepted.status_code, status.HTTP_200_OK)
        self.assertTrue(accepted.data["closed_now"])

        status_response = self.client.get(self.url("negotiation-status"))
        self.assertEqual(status_response.data["role"], "buyer")
        self.assertTrue(status_response.data["awaiting_payment"])
        self.assertEqual(status_response.data["final_price"], "80.00")

        self.client.force_authenticate(user=self.alice)
        forbidden = self.client.get(self.url("negotiation-status"))
        self.assertEqual(forbidden.status_code, status.HTTP_403_FORBIDDEN)

    def test_select_buyer_requires_bidder_id(self):
        self.place(self.alice, "70.00")
        self.client.force_authenticate(user=self.seller)

        response = self.client.post(self.url("select-buyer"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_close(self):
        self.place(self.alice, "70.00")
        self.client.force_authenticate(user=self.seller)

        response = self.client.post(self.url("close"), {"reason": "auction_ended"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["close_reason"], "auction_ended")
        self.assertEqual(AuctionLedger.objects.get(listing=self.listing).status, "closed")

        again = self.client.post(self.url("close"), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

    def test_history(self):
        self.place(self.alice, "70.00")

        response = self.client.get(reverse("auctions:auction-history"), {"page": 1, "page_size": 5})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertTrue(response.data["results"][0]["is_winning"])

    def test_metrics_endpoint(self):
        self.place(self.alice, "70.00")
        self.client.force_authenticate(user=None)

        response = self.client.get(reverse("auctions:auctions-metrics"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b"bids_placed_total", response.content)
