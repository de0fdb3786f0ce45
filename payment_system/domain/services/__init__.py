from .checkout_service import CheckoutService
from .notification_service import InvoiceNotificationService
from .reconciliation_service import PaymentReconciliationService, generate_invoice_number
from .transaction_service import TransactionService
from .webhook_service import PaymentWebhookService


__all__ = [
    "CheckoutService",
    "InvoiceNotificationService",
    "PaymentReconciliationService",
    "PaymentWebhookService",
    "TransactionService",
    "generate_invoice_number",
]
