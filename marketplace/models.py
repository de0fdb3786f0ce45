from marketplace.catalog.domain.models import Listing
from marketplace.ordering.domain.models import Delivery, DeliveryStatusHistory


__all__ = [
    "Listing",
    "Delivery",
    "DeliveryStatusHistory",
]
