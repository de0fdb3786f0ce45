from decimal import Decimal
from unittest.mock import Mock

import pytest

from auctions.domain.services import (
    IncrementOverHighest,
    NoFloor,
    PercentageOfPrice,
    build_bid_floor_policy,
    parse_bid_amount,
)


@pytest.mark.unit
class TestParseBidAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("80", Decimal("80.00")),
            ("80.5", Decimal("80.50")),
            (80, Decimal("80.00")),
            (" 12.34 ", Decimal("12.34")),
            (Decimal("0.01"), Decimal("0.01")),
        ],
    )
    def test_accepts_positive_amounts(self, raw, expected):
        assert parse_bid_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, True, "", "abc", "0", "-5", "12.345", "NaN", "Infinity", "1e12", [], {"amount": 5}],
    )
    def test_rejects_invalid_amounts(self, raw):
        assert parse_bid_amount(raw) is None


@pytest.mark.unit
class TestBidFloorPolicies:
    def setup_method(self):
        self.listing = Mock(price=Decimal("100.00"))

    def test_no_floor_accepts_a_cent(self):
        policy = NoFloor()
        assert policy.rejection_reason(self.listing, None, Decimal("0.01")) is None

    def test_percentage_of_price_rejects_below_half(self):
        policy = PercentageOfPrice(Decimal("0.5"))
        assert policy.minimum_bid(self.listing, None) == Decimal("50.00")
        assert policy.rejection_reason(self.listing, None, Decimal("49.99")) == "Bid must be at least 50.00"
        assert policy.rejection_reason(self.listing, None, Decimal("50.00")) is None

    def test_percentage_of_price_rounds_up_to_cents(self):
        listing = Mock(price=Decimal("33.33"))
        assert PercentageOfPrice(Decimal("0.5")).minimum_bid(listing, None) == Decimal("16.67")

    def test_increment_over_highest_without_bids(self):
        policy = IncrementOverHighest(Decimal("5"))
        assert policy.minimum_bid(self.listing, None) == Decimal("0.01")

    def test_increment_over_highest_uses_ledger_increment(self):
        ledger = Mock(highest_bid=Decimal("80.00"), minimum_bid_increment=Decimal("2.50"))
        policy = IncrementOverHighest(Decimal("1"))
        assert policy.minimum_bid(self.listing, ledger) == Decimal("82.50")
        assert policy.rejection_reason(self.listing, ledger, Decimal("82.49")) is not None

    def test_build_policy_from_config(self):
        assert isinstance(build_bid_floor_policy({"BID_FLOOR_POLICY": "none"}), NoFloor)

        policy = build_bid_floor_policy({"BID_FLOOR_POLICY": "percentage_of_price", "BID_FLOOR_FRACTION": "0.25"})
        assert isinstance(policy, PercentageOfPrice)
        assert policy.fraction == Decimal("0.25")

        policy = build_bid_floor_policy({"BID_FLOOR_POLICY": "increment_over_highest", "BID_INCREMENT": "3"})
        assert isinstance(policy, IncrementOverHighest)
        assert policy.increment == Decimal("3")

    def test_build_policy_rejects_unknown_name(self):
        with pytest.raises(ValueError):
            build_bid_floor_policy({"BID_FLOOR_POLICY": "dutch"})
