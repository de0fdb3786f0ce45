# Marketplace API Serializers

from .response_serializers import (
    DeliverySerializer,
    DeliveryStatusHistorySerializer,
    DeliveryStatusUpdateRequestSerializer,
    ErrorResponseSerializer,
)


__all__ = [
    "DeliverySerializer",
    "DeliveryStatusHistorySerializer",
    "DeliveryStatusUpdateRequestSerializer",
    "ErrorResponseSerializer",
]
