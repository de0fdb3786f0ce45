"""
Outgoing mail contract used by invoice notifications.

Senders accept one EmailMessage at a time; batching is left to callers,
which send one invoice per party after a payment is finalized.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


class EmailException(Exception):
    """Raised by a sender when the mail backend refuses or fails a send."""


@dataclass
class EmailMessage:
    """
    A single outgoing email.

    ``body`` is the plain-text part and is always present; ``html_body`` is
    attached as an alternative when set. ``from_email`` falls back to the
    sender's configured default.
    """

    subject: str
    body: str
    to: List[str]
    from_email: Optional[str] = None
    html_body: Optional[str] = None
    reply_to: List[str] = field(default_factory=list)

    @property
    def has_recipients(self) -> bool:
        return any(self.to)


class EmailServiceInterface(ABC):
    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """
        Hand ``message`` to the mail backend.

        Returns False when the backend accepted the call but delivered
        nothing. Raises EmailException when the send itself fails.
        """
