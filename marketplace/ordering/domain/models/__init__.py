from .delivery import Delivery, DeliveryStatusHistory


__all__ = ["Delivery", "DeliveryStatusHistory"]
