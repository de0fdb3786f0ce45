"""
Transaction Utilities for Bidmarket Backend
===========================================

Deadlock handling for the row-locking sections used by the auction and payment
services.

Usage Examples:
    @retry_on_deadlock()
    def place_bid(...):
        with transaction.atomic():
            listing = Listing.objects.select_for_update().get(pk=listing_id)
            ...
"""

import logging
import time
from functools import wraps

from django.db import OperationalError, connection


logger = logging.getLogger(__name__)

# Messages raised by MySQL (1213 / 1205), PostgreSQL and SQLite when a
# lock could not be acquired.
DEADLOCK_MARKERS = (
    "Deadlock found",
    "1213",
    "Lock wait timeout",
    "1205",
    "deadlock detected",
    "database is locked",
)


class TransactionError(Exception):
    """Custom exception for transaction-related errors"""

    pass


class DeadlockError(TransactionError):
    """Exception raised when a deadlock persists after every retry"""

    pass


def is_deadlock(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in DEADLOCK_MARKERS)


def retry_on_deadlock(max_retries=3, delay=0.1, backoff=2.0):
    """
    Decorator to retry operations on deadlock with exponential backoff.

    Only the outermost transaction can be replayed, so a call made while an
    atomic block is already open re-raises immediately.

    Args:
        max_retries (int): Maximum number of retry attempts
        delay (float): Initial delay between retries in seconds
        backoff (float): Backoff multiplier for delay
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    if not is_deadlock(e):
                        raise
                    if connection.in_atomic_block or attempt >= max_retries:
                        raise DeadlockError(f"Deadlock detected in {func.__name__}: {e}") from e
                    logger.warning(
                        f"Deadlock in {func.__name__}, retrying in {current_delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator
