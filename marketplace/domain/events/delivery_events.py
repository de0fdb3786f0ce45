from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class DeliveryCreatedEvent(DomainEvent):
    """Event: Delivery minted for a paid sale."""

    def __init__(self, delivery_id: str, listing_id: str, tracking_number: str, buyer_id: str, seller_id: str):
        super().__init__(
            event_type="delivery.created",
            payload={
                "delivery_id": delivery_id,
                "listing_id": listing_id,
                "tracking_number": tracking_number,
                "buyer_id": buyer_id,
                "seller_id": seller_id,
            },
        )


@dataclass
class DeliveryStatusChangedEvent(DomainEvent):
    """Event: Delivery moved forward."""

    def __init__(self, delivery_id: str, old_status: str, new_status: str, updated_by: str):
        super().__init__(
            event_type="delivery.status_changed",
            payload={
                "delivery_id": delivery_id,
                "old_status": old_status,
                "new_status": new_status,
                "updated_by": updated_by,
            },
        )
