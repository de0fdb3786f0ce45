"""
InvoiceNotificationService - invoice emails after a verified payment.

Delivery is best-effort: a failed send is logged and counted, never raised,
so a mail outage cannot undo or block a recorded payment.
"""

from typing import Any, Dict

from django.conf import settings
from django.template import TemplateDoesNotExist, TemplateSyntaxError
from django.template.loader import render_to_string

from infrastructure.email import EmailException, EmailMessage, EmailServiceInterface
from marketplace.services.base import BaseService
from payment_system.infra.observability.metrics import invoice_notifications_total
from utils.logging_utils import mask_value


class InvoiceNotificationService(BaseService):
    TEMPLATES = {
        "buyer": "payment_system/emails/buyer_invoice",
        "seller": "payment_system/emails/seller_invoice",
    }

    def __init__(self, email_service: EmailServiceInterface):
        super().__init__()
        self.email_service = email_service

    def send_invoice(self, recipient_email: str, invoice_details: Dict[str, Any]) -> bool:
        """
        Render and send one invoice email.

        ``invoice_details["role"]`` selects the buyer or seller template.
        Returns True when the email was handed to the mail backend.
        """
        if not recipient_email:
            self.logger.warning(f"Invoice {invoice_details.get('invoice_number')} has no recipient address")
            invoice_notifications_total.labels(result="skipped").inc()
            return False

        role = invoice_details.get("role", "buyer")
        template = self.TEMPLATES.get(role, self.TEMPLATES["buyer"])
        context = {
            **invoice_details,
            "frontend_url": getattr(settings, "FRONTEND_URL", ""),
            "company_name": "Bidmarket",
        }

        try:
            message = EmailMessage(
                subject=f"Invoice {invoice_details.get('invoice_number')} - {invoice_details.get('listing_title')}",
                body=render_to_string(f"{template}.txt", context),
                html_body=render_to_string(f"{template}.html", context),
                to=[recipient_email],
            )
        except (TemplateDoesNotExist, TemplateSyntaxError) as e:
            self.logger.error(f"Could not render invoice template {template}: {str(e)}")
            invoice_notifications_total.labels(result="failed").inc()
            return False

        try:
            sent = self.email_service.send(message)
        except EmailException as e:
            self.logger.error(
                f"Invoice email to {mask_value(recipient_email)} failed: {str(e)}",
            )
            invoice_notifications_total.labels(result="failed").inc()
            return False

        invoice_notifications_total.labels(result="sent" if sent else "failed").inc()
        return sent

    def send_transaction_invoices(self, payment_transaction, buyer_identity, seller_identity) -> Dict[str, bool]:
        """Send the invoice to both parties of a transaction."""
        details = {
            "invoice_number": payment_transaction.invoice_number,
            "transaction_id": str(payment_transaction.pk),
            "listing_title": payment_transaction.listing.title,
            "amount": payment_transaction.amount,
            "currency": payment_transaction.currency.upper(),
            "transaction_date": payment_transaction.transaction_date,
            "payment_method": payment_transaction.payment_method,
            "buyer_name": buyer_identity.name,
            "seller_name": seller_identity.name,
        }
        return {
            "buyer": self.send_invoice(buyer_identity.email, {**details, "role": "buyer"}),
            "seller": self.send_invoice(seller_identity.email, {**details, "role": "seller"}),
        }
