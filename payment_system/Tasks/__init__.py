"""
Payment System Tasks Package

Celery task definitions for the payment system.
"""

from .reconciliation_tasks import complete_ledger_records_task, complete_unfinished_payments_task


__all__ = [
    "complete_unfinished_payments_task",
    "complete_ledger_records_task",
]
