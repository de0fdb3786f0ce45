import json

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from infrastructure.payments import WebhookEvent
from marketplace.models import Delivery
from marketplace.services import ErrorCodes
from payment_system.models import PaymentTransaction


pytestmark = [pytest.mark.django_db, pytest.mark.integration]


def completed_event(session, event_id="evt_mock_1"):
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "created": 1767225600,
        "data": {"object": {"id": session.session_id, "metadata": dict(session.metadata)}},
    }


@pytest.fixture
def webhook_url():
    return reverse("payment_system:stripe-webhook")


@pytest.fixture
def post_webhook(webhook_url):
    client = APIClient()

    def post(body, signature="mock-signature"):
        headers = {"HTTP_STRIPE_SIGNATURE": signature} if signature else {}
        return client.post(webhook_url, data=json.dumps(body), content_type="application/json", **headers)

    return post


class TestStripeWebhookView:
    def test_completed_checkout_finalizes_payment(self, post_webhook, accepted_deal, paid_session):
        response = post_webhook(completed_event(paid_session))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["handled"] is True
        assert response.data["already_paid"] is False
        assert accepted_deal.ledger.is_paid
        assert PaymentTransaction.objects.count() == 1

    def test_webhook_after_client_verify(self, post_webhook, reconciliation, accepted_deal, paid_session):
        verified = reconciliation.verify_and_finalize_payment(
            accepted_deal.listing.pk, accepted_deal.buyer, paid_session.session_id
        )

        response = post_webhook(completed_event(paid_session))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["already_paid"] is True
        assert response.data["invoice_number"] == verified.value["invoice_number"]
        assert PaymentTransaction.objects.count() == 1
        assert Delivery.objects.count() == 1

    def test_redelivered_event(self, post_webhook, accepted_deal, paid_session, email_service):
        post_webhook(completed_event(paid_session))
        response = post_webhook(completed_event(paid_session))

        assert response.data["already_paid"] is True
        assert email_service.get_sent_count() == 2

    def test_missing_signature(self, post_webhook, paid_session):
        response = post_webhook(completed_event(paid_session), signature=None)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "validation_error"

    def test_bad_signature(self, post_webhook, accepted_deal, paid_session):
        response = post_webhook(completed_event(paid_session), signature="forged")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not accepted_deal.ledger.is_paid

    def test_other_event_types_are_acknowledged(self, post_webhook):
        response = post_webhook({"id": "evt_2", "type": "payment_intent.created", "data": {"object": {}}})

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"event_id": "evt_2", "event_type": "payment_intent.created", "handled": False}

    def test_unpaid_session_event_conflicts(self, post_webhook, checkout, payment_provider, accepted_deal):
        session_id = checkout.create_payment_session(accepted_deal.listing.pk, accepted_deal.buyer).value["session_id"]

        response = post_webhook(completed_event(payment_provider.sessions[session_id]))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error"] == "payment_not_completed"


class TestHandleEvent:
    @pytest.fixture
    def webhook_service(self, test_container):
        return test_container.webhook_service()

    def event(self, data, event_type="checkout.session.completed"):
        return WebhookEvent(event_id="evt_unit", event_type=event_type, data=data, created_at=0)

    def test_metadata_required(self, webhook_service):
        result = webhook_service.handle_event(self.event({"id": "cs_mock_x", "metadata": {}}))
        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_unknown_buyer(self, webhook_service, accepted_deal):
        result = webhook_service.handle_event(
            self.event(
                {
                    "id": "cs_mock_x",
                    "metadata": {
                        "listing_id": str(accepted_deal.listing.pk),
                        "buyer_id": "00000000-0000-0000-0000-000000000000",
                    },
                }
            )
        )
        assert result.error == ErrorCodes.BUYER_MISMATCH

    def test_uses_session_metadata(self, webhook_service, accepted_deal, paid_session):
        result = webhook_service.handle_event(
            self.event({"id": paid_session.session_id, "metadata": dict(paid_session.metadata)})
        )

        assert result.ok
        assert result.value["handled"] is True
        assert result.value["invoice_number"] == accepted_deal.ledger.invoice_number
