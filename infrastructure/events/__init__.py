import logging

from django.conf import settings

from .event_bus_interface import EventBus
from .memory_event_bus import InMemoryEventBus
from .redis_event_bus import RedisEventBus


logger = logging.getLogger(__name__)


def create_event_bus(backend: str | None = None) -> EventBus:
    """Build the event bus named by INFRASTRUCTURE['EVENT_BUS_BACKEND']."""
    backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("EVENT_BUS_BACKEND", "redis")
    logger.info(f"Creating event bus: {backend_type}")

    if backend_type == "redis":
        return RedisEventBus()
    elif backend_type == "memory":
        return InMemoryEventBus()
    raise ValueError(f"Invalid event bus backend: {backend_type}. Must be 'redis' or 'memory'")


__all__ = ["EventBus", "RedisEventBus", "InMemoryEventBus", "create_event_bus"]
