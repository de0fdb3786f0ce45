"""
Base classes and utilities for the service layer.

This module provides the ServiceResult pattern (inspired by Rust's Result type),
the BaseService class and the shared error codes used by the marketplace,
auction and payment services.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar


T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected failures (bad input, wrong caller, state conflicts) are returned,
    never raised.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = service_ok({"highest_bid": Decimal("80.00")})
        >>> if result.ok:
        ...     return Response(result.value, 200)

        >>> result = service_err(ErrorCodes.DUPLICATE_BID, "Bidder already has an active bid")
        >>> result.error
        'duplicate_bid'
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    @property
    def retryable(self) -> bool:
        """True when the failure came from an external dependency and the call may be repeated."""
        return not self.ok and self.error in ErrorCodes.RETRYABLE

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'success' and either 'data' or 'error'
        """
        if self.ok:
            return {"success": True, "data": self.value}
        return {
            "success": False,
            "error": {"code": self.error, "message": self.error_detail, "retryable": self.retryable},
        }


def service_ok(value: T) -> ServiceResult[T]:
    """Create a successful ServiceResult."""
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "listing_not_found", "invalid_amount")
        error_detail: Human-readable error message

    Example:
        >>> return service_err(ErrorCodes.LISTING_NOT_FOUND, f"Listing {listing_id} does not exist")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class AuctionService(BaseService):
            def __init__(self, listing_store):
                super().__init__()
                self.listing_store = listing_store

            @BaseService.log_performance
            def place_bid(self, listing_id, bidder, amount):
                self.logger.info(f"Placing bid on listing {listing_id}")
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time, the error code of failed results and any
        exception that escapes.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    elif result.error in ErrorCodes.AUTHORIZATION:
                        self.logger.warning(
                            f"{method_name} denied with '{result.error}' in {elapsed_time:.2f}ms: {result.error_detail}"
                        )
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across marketplace, auction and payment services."""

    # Validation errors
    INVALID_AMOUNT = "invalid_amount"
    BID_BELOW_MINIMUM = "bid_below_minimum"
    MISSING_SESSION_REFERENCE = "missing_session_reference"
    VALIDATION_ERROR = "validation_error"

    # Authorization errors
    SELLER_CANNOT_BID = "seller_cannot_bid"
    NOT_SELLER = "not_seller"
    NOT_SELECTED_BUYER = "not_selected_buyer"
    FORBIDDEN = "forbidden"
    BUYER_MISMATCH = "buyer_mismatch"

    # Not found
    LISTING_NOT_FOUND = "listing_not_found"
    LEDGER_NOT_FOUND = "ledger_not_found"
    NO_BIDS = "no_bids"
    NO_SUCH_BID = "no_such_bid"
    BIDDER_NOT_FOUND = "bidder_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    DELIVERY_NOT_FOUND = "delivery_not_found"

    # State conflicts
    AUCTION_CLOSED = "auction_closed"
    ALREADY_CLOSED = "already_closed"
    DUPLICATE_BID = "duplicate_bid"
    ALREADY_COMPLETED = "already_completed"
    NOT_READY_FOR_PAYMENT = "not_ready_for_payment"
    PAYMENT_NOT_COMPLETED = "payment_not_completed"
    SESSION_MISMATCH = "session_mismatch"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"

    # External dependencies
    PAYMENT_PROVIDER_ERROR = "payment_provider_error"

    VALIDATION = frozenset({INVALID_AMOUNT, BID_BELOW_MINIMUM, MISSING_SESSION_REFERENCE, VALIDATION_ERROR})
    AUTHORIZATION = frozenset({SELLER_CANNOT_BID, NOT_SELLER, NOT_SELECTED_BUYER, FORBIDDEN, BUYER_MISMATCH})
    NOT_FOUND = frozenset(
        {
            LISTING_NOT_FOUND,
            LEDGER_NOT_FOUND,
            NO_BIDS,
            NO_SUCH_BID,
            BIDDER_NOT_FOUND,
            TRANSACTION_NOT_FOUND,
            DELIVERY_NOT_FOUND,
        }
    )
    CONFLICT = frozenset(
        {
            AUCTION_CLOSED,
            ALREADY_CLOSED,
            DUPLICATE_BID,
            ALREADY_COMPLETED,
            NOT_READY_FOR_PAYMENT,
            PAYMENT_NOT_COMPLETED,
            SESSION_MISMATCH,
            INVALID_STATUS_TRANSITION,
        }
    )
    RETRYABLE = frozenset({PAYMENT_PROVIDER_ERROR})


def http_status_for(error: Optional[str]) -> int:
    """HTTP status code that the API layer returns for a failed result."""
    if error in ErrorCodes.VALIDATION:
        return 400
    if error in ErrorCodes.AUTHORIZATION:
        return 403
    if error in ErrorCodes.NOT_FOUND:
        return 404
    if error in ErrorCodes.CONFLICT:
        return 409
    if error in ErrorCodes.RETRYABLE:
        return 502
    return 500
