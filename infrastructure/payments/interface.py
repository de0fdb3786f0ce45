"""
Hosted-checkout contract for auction payments.

Amounts go in as Decimals in the major currency unit and come back on
CheckoutSession in minor units, the way the provider reports them. A
session counts as paid only once the provider says so; nothing local is
trusted for that.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PaymentException(Exception):
    """Raised by providers for network, auth or signature failures."""


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class CheckoutSession:
    """
    Provider view of one hosted checkout.

    ``metadata`` carries the listing, buyer and ledger ids set at creation,
    so a later retrieval or webhook can be matched back to its ledger.
    ``payment_reference`` is only set after capture.
    """

    session_id: str
    url: str
    amount: int
    currency: str
    status: PaymentStatus
    metadata: Dict[str, Any] = field(default_factory=dict)
    payment_reference: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED


@dataclass
class WebhookEvent:
    """A provider notification whose signature has already been checked."""

    event_id: str
    event_type: str
    data: Dict[str, Any]
    created_at: int


class PaymentProviderInterface(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CheckoutSession:
        """
        Open a hosted checkout for ``amount`` and return where to send the payer.

        Raises:
            PaymentException: the provider rejected or never answered the request
        """

    @abstractmethod
    def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch the provider's current state of a session. Raises PaymentException."""

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Check ``signature`` against the raw ``payload`` and parse it. Raises PaymentException."""
