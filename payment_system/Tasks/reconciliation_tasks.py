"""
Payment System Celery Tasks

Periodic repair of paid auctions whose PaymentTransaction or Delivery was
never written. Scheduled by beat in bidmarketBackend/celery.py.
"""

import logging

from celery import shared_task
from django.db import OperationalError


logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def complete_unfinished_payments_task(self, limit=None):
    """
    Complete every paid ledger that is missing its transaction or delivery.

    Returns:
        dict: counts of checked ledgers plus repaired and failed ledger ids
    """
    from infrastructure.container import container

    try:
        summary = container.reconciliation_service().complete_all_pending(limit=limit)
    except OperationalError as exc:
        logger.warning(f"Repair run hit a database error, retrying: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2**self.request.retries))

    if summary["checked"]:
        logger.info(
            f"Repair run checked {summary['checked']} ledgers: "
            f"{len(summary['repaired'])} repaired, {len(summary['failed'])} failed"
        )
    return summary


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def complete_ledger_records_task(self, ledger_id):
    """Complete the records of a single paid ledger."""
    from infrastructure.container import container

    try:
        result = container.reconciliation_service().complete_pending_records(ledger_id)
    except OperationalError as exc:
        raise self.retry(exc=exc, countdown=60 * (2**self.request.retries))

    if not result.ok:
        logger.warning(f"Ledger {ledger_id} not completed: {result.error_detail}")
        return {"success": False, "ledger_id": str(ledger_id), "error": result.error}
    return {"success": True, "ledger_id": str(ledger_id), "repaired": result.value["repaired"]}
