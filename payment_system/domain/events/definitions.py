from dataclasses import dataclass

from marketplace.domain.events.base import DomainEvent


@dataclass
class PaymentCompletedEvent(DomainEvent):
    """Event: auction payment verified and recorded."""

    def __init__(
        self,
        ledger_id: str,
        listing_id: str,
        transaction_id: str,
        invoice_number: str,
        amount: str,
        currency: str,
        buyer_id: str,
        seller_id: str,
    ):
        super().__init__(
            event_type="payment.completed",
            payload={
                "ledger_id": ledger_id,
                "listing_id": listing_id,
                "transaction_id": transaction_id,
                "invoice_number": invoice_number,
                "amount": amount,
                "currency": currency,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
            },
        )
