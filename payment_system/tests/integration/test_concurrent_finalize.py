import pytest

from infrastructure.payments import WebhookEvent
from marketplace.models import Delivery
from payment_system.models import PaymentTransaction


pytestmark = [pytest.mark.django_db(transaction=True), pytest.mark.integration]


@pytest.fixture
def webhook_service(test_container):
    return test_container.webhook_service()


def completed_event(session):
    return WebhookEvent(
        event_id="evt_race",
        event_type="checkout.session.completed",
        data={"id": session.session_id, "metadata": dict(session.metadata)},
        created_at=0,
    )


class TestConcurrentFinalize:
    def test_parallel_verifies_record_one_sale(
        self, reconciliation, accepted_deal, paid_session, run_concurrently, email_service, event_bus
    ):
        def verify():
            return reconciliation.verify_and_finalize_payment(
                accepted_deal.listing.pk, accepted_deal.buyer, paid_session.session_id
            )

        results = run_concurrently(verify, verify, verify)

        assert all(result.ok for result in results)
        assert sorted(result.value["already_paid"] for result in results) == [False, True, True]
        assert len({result.value["transaction"]["transaction_id"] for result in results}) == 1
        assert len({result.value["delivery"]["delivery_id"] for result in results}) == 1
        assert len({result.value["invoice_number"] for result in results}) == 1

        assert PaymentTransaction.objects.count() == 1
        assert Delivery.objects.count() == 1
        assert email_service.get_sent_count() == 2
        assert len(event_bus.events_of_type("payment.completed")) == 1
        assert len(event_bus.events_of_type("delivery.created")) == 1

    def test_webhook_racing_client_verify_records_one_sale(
        self, reconciliation, webhook_service, accepted_deal, paid_session, run_concurrently
    ):
        webhook_result, verify_result = run_concurrently(
            lambda: webhook_service.handle_event(completed_event(paid_session)),
            lambda: reconciliation.verify_and_finalize_payment(
                accepted_deal.listing.pk, accepted_deal.buyer, paid_session.session_id
            ),
        )

        assert webhook_result.ok
        assert verify_result.ok
        assert webhook_result.value["invoice_number"] == verify_result.value["invoice_number"]
        assert [webhook_result.value["already_paid"], verify_result.value["already_paid"]].count(False) == 1

        ledger = accepted_deal.ledger
        assert ledger.is_paid
        assert PaymentTransaction.objects.filter(ledger=ledger).count() == 1
        assert Delivery.objects.filter(listing=accepted_deal.listing).count() == 1
