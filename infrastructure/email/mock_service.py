"""
In-memory sender used by the test container and local development.
"""

import logging
from typing import List, Optional

from .interface import EmailException, EmailMessage, EmailServiceInterface


logger = logging.getLogger(__name__)


class MockEmailService(EmailServiceInterface):
    """
    Records every message in ``sent_messages`` instead of delivering it.

    Assign an exception to ``fail_with`` to simulate a mail outage; each send
    then raises EmailException and nothing is recorded.
    """

    def __init__(self):
        self.sent_messages: List[EmailMessage] = []
        self.fail_with: Optional[Exception] = None

    def send(self, message: EmailMessage) -> bool:
        if self.fail_with is not None:
            raise EmailException(str(self.fail_with)) from self.fail_with
        if not message.has_recipients:
            logger.warning(f"[MOCK EMAIL] Dropping '{message.subject}': no recipients")
            return False

        logger.info(f"[MOCK EMAIL] {len(message.to)} recipient(s), subject '{message.subject}'")
        self.sent_messages.append(message)
        return True

    def clear_sent_messages(self):
        self.sent_messages.clear()

    def get_sent_count(self) -> int:
        return len(self.sent_messages)

    def get_last_message(self) -> Optional[EmailMessage]:
        if not self.sent_messages:
            return None
        return self.sent_messages[-1]
