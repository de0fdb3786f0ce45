import logging
from typing import List

from .event_bus_interface import EventBus
from .redis_event_bus import build_envelope


logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """Process-local event bus that records every envelope it is given."""

    def __init__(self):
        self.published: List[dict] = []

    def publish(self, event_type: str, payload: dict):
        self.published.append(build_envelope(event_type, payload))
        logger.debug(f"Published in-memory event: {event_type}")

    def events_of_type(self, event_type: str) -> List[dict]:
        return [event for event in self.published if event["event_type"] == event_type]

    def clear(self):
        self.published.clear()
