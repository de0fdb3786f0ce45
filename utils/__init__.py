# Utils package for Bidmarket backend

from .transaction_utils import DeadlockError, TransactionError, retry_on_deadlock


__all__ = ["DeadlockError", "TransactionError", "retry_on_deadlock"]
