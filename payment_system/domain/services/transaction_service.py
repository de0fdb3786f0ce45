"""
TransactionService - read access to completed sales for the parties involved.
"""

from django.core.exceptions import ValidationError
from django.db.models import Q

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.models import PaymentTransaction


class TransactionService(BaseService):
    def _queryset(self):
        return PaymentTransaction.objects.select_related("listing", "seller", "buyer", "ledger")

    @BaseService.log_performance
    def list_user_transactions(self, user) -> ServiceResult[dict]:
        """Return the user's sales and purchases, newest first."""
        transactions = self._queryset().filter(Q(seller=user) | Q(buyer=user)).order_by("-transaction_date")
        sales = [t for t in transactions if t.seller_id == user.pk]
        purchases = [t for t in transactions if t.buyer_id == user.pk]
        return service_ok({"sales": sales, "purchases": purchases})

    @BaseService.log_performance
    def get_transaction(self, transaction_id, user) -> ServiceResult[PaymentTransaction]:
        try:
            payment_transaction = self._queryset().get(pk=transaction_id)
        except (PaymentTransaction.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.TRANSACTION_NOT_FOUND, f"Transaction {transaction_id} not found")

        if not payment_transaction.involves(user):
            self.logger.warning(f"User {user.pk} denied access to transaction {transaction_id}")
            return service_err(ErrorCodes.FORBIDDEN, "Only the buyer or seller can view this transaction")

        return service_ok(payment_transaction)
