from django.contrib import admin

from .models import PaymentTransaction


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'listing', 'buyer', 'seller', 'amount', 'currency', 'status', 'transaction_date')
    list_filter = ('status', 'currency', 'transaction_date')
    search_fields = ('invoice_number', 'payment_reference', 'checkout_session_id', 'buyer__email', 'seller__email')
    readonly_fields = (
        'id', 'ledger', 'listing', 'seller', 'buyer', 'amount', 'currency', 'payment_method',
        'invoice_number', 'payment_reference', 'checkout_session_id', 'transaction_date', 'created_at', 'updated_at',
    )
    date_hierarchy = 'transaction_date'
