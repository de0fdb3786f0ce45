import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from django.utils import timezone


logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """
    A fact about a ledger, payment or delivery, named ``<area>.<fact>``.

    Services publish events only after their locked section has returned, so
    subscribers never observe state that was later rolled back.
    """

    event_type: str
    occurred_at: datetime = field(default_factory=timezone.now)
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": dict(self.payload),
        }

    def publish_to(self, event_bus) -> bool:
        if event_bus is None:
            logger.debug(f"No event bus configured, {self.event_type} not published")
            return False
        event_bus.publish(self.event_type, self.payload)
        return True
