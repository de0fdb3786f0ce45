from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from marketplace.models import Delivery
from payment_system.models import PaymentTransaction
from payment_system.Tasks import complete_ledger_records_task, complete_unfinished_payments_task


pytestmark = [pytest.mark.django_db, pytest.mark.integration]


@pytest.fixture
def half_finished(reconciliation, accepted_deal, paid_session):
    """A paid ledger whose delivery was lost after the payment was recorded."""
    result = reconciliation.verify_and_finalize_payment(
        accepted_deal.listing.pk, accepted_deal.buyer, paid_session.session_id
    )
    assert result.ok
    Delivery.objects.all().delete()
    return accepted_deal.ledger


def run(*args):
    out = StringIO()
    call_command("reconcile_payments", *args, stdout=out)
    return out.getvalue()


class TestReconcilePaymentsCommand:
    def test_repairs_incomplete_ledgers(self, half_finished):
        output = run()

        assert f"Repaired {half_finished.pk}" in output
        assert "Payment record repair complete." in output
        assert Delivery.objects.filter(listing=half_finished.listing).count() == 1

    def test_dry_run_changes_nothing(self, half_finished):
        output = run("--dry-run")

        assert "Found 1 paid ledgers with missing records." in output
        assert str(half_finished.pk) in output
        assert Delivery.objects.count() == 0

    def test_single_ledger(self, half_finished):
        output = run("--ledger", str(half_finished.pk))

        assert "created: delivery" in output
        assert PaymentTransaction.objects.count() == 1

    def test_unpaid_ledger_fails(self, accepted_deal):
        with pytest.raises(CommandError, match="payment_not_completed"):
            run("--ledger", str(accepted_deal.ledger.pk))

    def test_nothing_to_do(self):
        assert "Checked 0 ledgers." in run()


class TestReconciliationTasks:
    def test_periodic_task(self, half_finished):
        summary = complete_unfinished_payments_task.apply().get()

        assert summary == {"checked": 1, "repaired": [str(half_finished.pk)], "failed": []}

    def test_single_ledger_task(self, half_finished):
        outcome = complete_ledger_records_task.apply(args=[str(half_finished.pk)]).get()

        assert outcome == {
            "success": True,
            "ledger_id": str(half_finished.pk),
            "repaired": {"transaction": False, "delivery": True},
        }

    def test_single_ledger_task_reports_failure(self, accepted_deal):
        outcome = complete_ledger_records_task.apply(args=[str(accepted_deal.ledger.pk)]).get()

        assert outcome["success"] is False
        assert outcome["error"] == "payment_not_completed"
