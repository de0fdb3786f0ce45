from .definitions import PaymentCompletedEvent


__all__ = ["PaymentCompletedEvent"]
