from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response
from marketplace.api.serializers import (
    DeliverySerializer,
    DeliveryStatusUpdateRequestSerializer,
    ErrorResponseSerializer,
)
from marketplace.ordering.domain.services import DeliveryService


class DeliveryViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> DeliveryService:
        return container.delivery_service()

    @extend_schema(
        operation_id="deliveries_list",
        summary="List deliveries involving the current user",
        description="""
        **What it returns:**
        - Deliveries where the user is the seller, buyer or delivery partner
        - Each delivery with its status history
        """,
        responses={200: OpenApiResponse(response=DeliverySerializer(many=True), description="Deliveries retrieved")},
        tags=["Marketplace - Deliveries"],
    )
    def list(self, request):
        result = self.get_service().list_for_user(request.user)
        if not result.ok:
            return error_response(result)
        return Response(DeliverySerializer(result.value, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="deliveries_retrieve",
        summary="Get delivery details",
        responses={
            200: OpenApiResponse(response=DeliverySerializer, description="Delivery retrieved"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a party to this delivery"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Delivery not found"),
        },
        tags=["Marketplace - Deliveries"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_for_user(pk, request.user)
        if not result.ok:
            return error_response(result)
        return Response(DeliverySerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="deliveries_update_status",
        summary="Move a delivery to its next status",
        description="""
        **What it receives:**
        - `status`: one of shipped, out_for_delivery, delivered (forward only)
        - `notes`: optional note stored in the status history

        Only the seller or the assigned delivery partner may update a delivery.
        """,
        request=DeliveryStatusUpdateRequestSerializer,
        responses={
            200: OpenApiResponse(response=DeliverySerializer, description="Status updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid request body"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not allowed to update"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Delivery not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid status transition"),
        },
        tags=["Marketplace - Deliveries"],
    )
    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        serializer = DeliveryStatusUpdateRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_service().update_status(
            pk, request.user, serializer.validated_data["status"], serializer.validated_data["notes"]
        )
        if not result.ok:
            return error_response(result)
        return Response(DeliverySerializer(result.value).data, status=status.HTTP_200_OK)
