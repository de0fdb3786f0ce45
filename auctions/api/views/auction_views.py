from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from auctions.api.serializers import (
    BidHistoryQuerySerializer,
    BidHistoryResponseSerializer,
    BidListResponseSerializer,
    BuyerAcceptResponseSerializer,
    CloseAuctionRequestSerializer,
    HighestBidResponseSerializer,
    LedgerSnapshotSerializer,
    NegotiationStatusResponseSerializer,
    PlaceBidRequestSerializer,
    PlaceBidResponseSerializer,
    SelectBuyerRequestSerializer,
    SelectBuyerResponseSerializer,
    WithdrawBidResponseSerializer,
)
from infrastructure.container import container
from marketplace.api.responses import error_response
from marketplace.api.serializers import ErrorResponseSerializer


ERROR_RESPONSES = {
    400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid request"),
    403: OpenApiResponse(response=ErrorResponseSerializer, description="Caller may not perform this action"),
    404: OpenApiResponse(response=ErrorResponseSerializer, description="Listing, auction or bid not found"),
    409: OpenApiResponse(response=ErrorResponseSerializer, description="Auction state does not allow this action"),
}


def _respond(result, serializer_class, success_status=status.HTTP_200_OK):
    if not result.ok:
        return error_response(result)
    return Response(serializer_class(result.value).data, status=success_status)


class AuctionViewSet(viewsets.ViewSet):
    """
    Bidding and negotiation on a single listing.

    All routes are keyed by the listing id.
    """

    permission_classes = [IsAuthenticated]
    lookup_field = "listing_id"
    lookup_value_regex = "[0-9a-fA-F-]{32,36}"

    @extend_schema(
        operation_id="auctions_bids_list",
        summary="List bids on a listing, highest first",
        responses={200: BidListResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Bids"],
    )
    @action(detail=True, methods=["get"], url_path="bids")
    def bids(self, request, listing_id=None):
        result = container.auction_service().list_bids(listing_id, request.user)
        return _respond(result, BidListResponseSerializer)

    @extend_schema(
        operation_id="auctions_bids_place",
        summary="Place a bid",
        description="""
        **What it receives:**
        - `amount`: positive amount with at most two decimal places

        **What it returns:**
        - The auction snapshot including the new highest bid and the placed bid

        Fails with `seller_cannot_bid`, `duplicate_bid`, `bid_below_minimum`,
        `invalid_amount` or `auction_closed`.
        """,
        request=PlaceBidRequestSerializer,
        responses={201: PlaceBidResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Bids"],
    )
    @action(detail=True, methods=["post"], url_path="bids/place")
    def place_bid(self, request, listing_id=None):
        serializer = PlaceBidRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = container.auction_service().place_bid(listing_id, request.user, serializer.validated_data["amount"])
        return _respond(result, PlaceBidResponseSerializer, success_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="auctions_bids_withdraw",
        summary="Withdraw the caller's bid",
        request=None,
        responses={200: WithdrawBidResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Bids"],
    )
    @action(detail=True, methods=["post"], url_path="bids/withdraw")
    def withdraw_bid(self, request, listing_id=None):
        result = container.auction_service().withdraw_bid(listing_id, request.user)
        return _respond(result, WithdrawBidResponseSerializer)

    @extend_schema(
        operation_id="auctions_highest_bid",
        summary="Get the current highest bid",
        responses={200: HighestBidResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Bids"],
    )
    @action(detail=True, methods=["get"], url_path="highest")
    def highest(self, request, listing_id=None):
        return _respond(container.auction_service().get_highest_bid(listing_id), HighestBidResponseSerializer)

    @extend_schema(
        operation_id="auctions_negotiation_status",
        summary="Negotiation status for the buyer or seller",
        responses={200: NegotiationStatusResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Negotiation"],
    )
    @action(detail=True, methods=["get"], url_path="status")
    def negotiation_status(self, request, listing_id=None):
        result = container.negotiation_service().get_status(listing_id, request.user)
        return _respond(result, NegotiationStatusResponseSerializer)

    @extend_schema(
        operation_id="auctions_select_buyer",
        summary="Seller selects the winning bidder",
        description="""
        **What it receives:**
        - `bidder_id`: user id of a current bidder

        Marks the seller's acceptance. If that bidder already accepted, the
        auction closes and the listing records the buyer and final price.
        """,
        request=SelectBuyerRequestSerializer,
        responses={200: SelectBuyerResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Negotiation"],
    )
    @action(detail=True, methods=["post"], url_path="select-buyer")
    def select_buyer(self, request, listing_id=None):
        serializer = SelectBuyerRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = container.negotiation_service().select_buyer(
            listing_id, request.user, serializer.validated_data["bidder_id"]
        )
        return _respond(result, SelectBuyerResponseSerializer)

    @extend_schema(
        operation_id="auctions_buyer_accept",
        summary="Selected buyer accepts the deal",
        request=None,
        responses={200: BuyerAcceptResponseSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Negotiation"],
    )
    @action(detail=True, methods=["post"], url_path="buyer-accept")
    def buyer_accept(self, request, listing_id=None):
        result = container.negotiation_service().buyer_accept_deal(listing_id, request.user)
        return _respond(result, BuyerAcceptResponseSerializer)

    @extend_schema(
        operation_id="auctions_close",
        summary="Seller closes the auction without a sale",
        request=CloseAuctionRequestSerializer,
        responses={200: LedgerSnapshotSerializer, **ERROR_RESPONSES},
        tags=["Auctions - Negotiation"],
    )
    @action(detail=True, methods=["post"], url_path="close")
    def close(self, request, listing_id=None):
        serializer = CloseAuctionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = container.auction_service().close_manually(
            listing_id, request.user, reason=serializer.validated_data["reason"]
        )
        return _respond(result, LedgerSnapshotSerializer)

    @extend_schema(
        operation_id="auctions_bid_history",
        summary="The caller's bids across all listings",
        parameters=[
            OpenApiParameter(name="page", type=int, description="Page number (default: 1)"),
            OpenApiParameter(name="page_size", type=int, description="Items per page (default: 20, max 100)"),
        ],
        responses={200: BidHistoryResponseSerializer},
        tags=["Auctions - Bids"],
    )
    @action(detail=False, methods=["get"], url_path="history")
    def history(self, request):
        query = BidHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = container.auction_service().bid_history(
            request.user, query.validated_data["page"], query.validated_data["page_size"]
        )
        return _respond(result, BidHistoryResponseSerializer)
