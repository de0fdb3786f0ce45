import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import OpenApiResponse, OpenApiTypes, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from infrastructure.container import container
from marketplace.api.responses import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from payment_system.api.serializers import (
    CheckoutSessionRequestSerializer,
    CheckoutSessionResponseSerializer,
    PaymentTransactionSerializer,
    TransactionListResponseSerializer,
    VerifyCheckoutRequestSerializer,
    VerifyCheckoutResponseSerializer,
    WebhookResponseSerializer,
)


logger = logging.getLogger(__name__)


class CheckoutSessionView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payment_checkout_session",
        summary="Create a checkout session for an accepted deal",
        description="""
        **What it receives:**
        - `listing_id`: listing whose deal both parties accepted
        - Optional `success_url` / `cancel_url` overrides

        **What it returns:**
        - `session_id` and hosted checkout `url`; nothing is recorded locally
        """,
        request=CheckoutSessionRequestSerializer,
        responses={
            201: CheckoutSessionResponseSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Caller is not the selected buyer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="No auction for this listing"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Deal not ready for payment"),
            502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment provider unavailable"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CheckoutSessionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = container.checkout_service().create_payment_session(
            data["listing_id"], request.user, success_url=data.get("success_url"), cancel_url=data.get("cancel_url")
        )
        if not result.ok:
            return error_response(result)
        return Response(CheckoutSessionResponseSerializer(result.value).data, status=status.HTTP_201_CREATED)


class VerifyCheckoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payment_verify_checkout",
        summary="Verify a paid checkout session and record the sale",
        description="""
        Safe to repeat: once the payment is recorded, later calls return the
        same invoice, transaction and delivery with `already_paid = true`.
        """,
        request=VerifyCheckoutRequestSerializer,
        responses={
            200: VerifyCheckoutResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing session reference"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Payment belongs to another buyer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="No auction for this listing"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Session not paid or mismatched"),
            502: OpenApiResponse(response=ErrorResponseSerializer, description="Payment provider unavailable"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = VerifyCheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = container.reconciliation_service().verify_and_finalize_payment(
            serializer.validated_data["listing_id"], request.user, serializer.validated_data["session_id"]
        )
        if not result.ok:
            return error_response(result)
        return Response(VerifyCheckoutResponseSerializer(result.value).data, status=status.HTTP_200_OK)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(APIView):
    """Provider webhook; authenticated by signature, not by user credentials."""

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="payment_stripe_webhook",
        summary="Stripe Webhook Endpoint",
        description="Receives Stripe webhook events. Verifies the signature before processing.",
        request=OpenApiTypes.OBJECT,
        responses={
            200: WebhookResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid payload or signature"),
        },
        tags=["Webhooks"],
        auth=[],
    )
    def post(self, request):
        signature = request.headers.get("stripe-signature")
        if not signature:
            client_ip = request.META.get("HTTP_X_FORWARDED_FOR", "").split(",")[0] or request.META.get(
                "REMOTE_ADDR", "unknown"
            )
            logger.warning(f"Webhook rejected: Missing stripe-signature header from IP {client_ip}")
            return Response(
                {"error": "validation_error", "message": "Missing stripe-signature header", "retryable": False},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = container.webhook_service().process_webhook(request.body, signature)
        if not result.ok:
            return error_response(result)
        return Response(WebhookResponseSerializer(result.value).data, status=status.HTTP_200_OK)


class TransactionViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="payment_transactions_list",
        summary="List the caller's sales and purchases",
        responses={200: TransactionListResponseSerializer},
        tags=["Payments - Transactions"],
    )
    def list(self, request):
        result = container.transaction_service().list_user_transactions(request.user)
        if not result.ok:
            return error_response(result)
        return Response(
            {
                "sales": PaymentTransactionSerializer(result.value["sales"], many=True).data,
                "purchases": PaymentTransactionSerializer(result.value["purchases"], many=True).data,
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="payment_transactions_retrieve",
        summary="Get a transaction the caller took part in",
        responses={
            200: PaymentTransactionSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Caller is not a party"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Transaction not found"),
        },
        tags=["Payments - Transactions"],
    )
    def retrieve(self, request, pk=None):
        result = container.transaction_service().get_transaction(pk, request.user)
        if not result.ok:
            return error_response(result)
        return Response(PaymentTransactionSerializer(result.value).data, status=status.HTTP_200_OK)
