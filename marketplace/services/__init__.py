"""
Marketplace Service Layer

Shared service plumbing used by every app:
- ServiceResult / service_ok / service_err: result objects returned by services
- ErrorCodes and http_status_for: error vocabulary and its HTTP mapping
- BaseService: logger and performance logging for service classes

Usage:
    from marketplace.services import service_ok, service_err

    result = container.delivery_service().get_for_user(delivery_id, request.user)
    if result.ok:
        delivery = result.value
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, http_status_for, service_err, service_ok


__all__ = [
    "BaseService",
    "ServiceResult",
    "ErrorCodes",
    "http_status_for",
    "service_ok",
    "service_err",
]
