"""
Mock Payment Provider
=====================

In-memory implementation of PaymentProviderInterface for tests and local
development. Sessions start unpaid; call ``mark_paid`` to simulate the payer
completing checkout.
"""

import json
import logging
import time
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .interface import CheckoutSession, PaymentException, PaymentProviderInterface, PaymentStatus, WebhookEvent
from .stripe_provider import to_minor_units


logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    """
    Mock payment provider.

    Keeps every created session in memory so tests can inspect and mutate it.
    Set ``fail_next`` to make the next call raise PaymentException.
    """

    VALID_SIGNATURE = "mock-signature"

    def __init__(self):
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created_sessions: List[CheckoutSession] = []
        self.retrieve_calls = 0
        self.fail_next = False

    def _maybe_fail(self, operation: str):
        if self.fail_next:
            self.fail_next = False
            logger.info(f"[MOCK PAYMENT] Simulated failure in {operation}")
            raise PaymentException(f"Simulated provider failure during {operation}")

    def create_checkout_session(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CheckoutSession:
        self._maybe_fail("create_checkout_session")
        session_id = f"cs_mock_{uuid.uuid4().hex[:16]}"
        session = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.mock/{session_id}",
            amount=to_minor_units(amount),
            currency=currency.lower(),
            status=PaymentStatus.PENDING,
            metadata={key: str(value) for key, value in (metadata or {}).items()},
        )
        self.sessions[session_id] = session
        self.created_sessions.append(session)
        logger.info(f"[MOCK PAYMENT] Created session {session_id} for {amount} {currency}")
        return session

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.retrieve_calls += 1
        self._maybe_fail("retrieve_session")
        try:
            return self.sessions[session_id]
        except KeyError:
            raise PaymentException(f"No such checkout session: {session_id}") from None

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != self.VALID_SIGNATURE:
            raise PaymentException("Webhook signature verification failed")
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise PaymentException("Invalid webhook payload") from e
        return WebhookEvent(
            event_id=event.get("id", f"evt_mock_{uuid.uuid4().hex[:12]}"),
            event_type=event["type"],
            data=event["data"]["object"],
            created_at=event.get("created", int(time.time())),
        )

    def mark_paid(self, session_id: str, payment_reference: Optional[str] = None) -> CheckoutSession:
        """Simulate the payer completing checkout."""
        session = self.sessions[session_id]
        session.status = PaymentStatus.SUCCEEDED
        session.payment_reference = payment_reference or f"pi_mock_{uuid.uuid4().hex[:16]}"
        return session
