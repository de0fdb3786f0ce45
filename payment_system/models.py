from .domain.models.payment_transaction import PaymentTransaction


__all__ = ["PaymentTransaction"]
