from abc import ABC, abstractmethod


class EventBus(ABC):
    """
    Outbound channel for domain events.

    Services only publish; consumers live outside this process and read the
    ``events.<type>`` channels directly.
    """

    @abstractmethod
    def publish(self, event_type: str, payload: dict):
        """Publish event to bus."""
