from .base import DomainEvent
from .delivery_events import DeliveryCreatedEvent, DeliveryStatusChangedEvent


__all__ = ["DomainEvent", "DeliveryCreatedEvent", "DeliveryStatusChangedEvent"]
