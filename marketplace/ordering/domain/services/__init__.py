from .delivery_service import DeliveryService, generate_tracking_number


__all__ = ["DeliveryService", "generate_tracking_number"]
