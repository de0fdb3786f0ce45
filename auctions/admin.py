from django.contrib import admin

from .models import AuctionLedger, Bid


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    fields = ('bidder', 'amount', 'placed_at')
    readonly_fields = ('bidder', 'amount', 'placed_at')
    can_delete = False


@admin.register(AuctionLedger)
class AuctionLedgerAdmin(admin.ModelAdmin):
    list_display = ('listing', 'seller', 'buyer', 'highest_bid', 'status', 'negotiation_state', 'is_paid', 'created_at')
    list_filter = ('status', 'is_paid', 'close_reason', 'created_at')
    search_fields = ('listing__title', 'seller__email', 'buyer__email', 'invoice_number', 'checkout_session_id')
    inlines = [BidInline]

    # Ledger state only changes through the auction and payment services
    readonly_fields = (
        'id', 'listing', 'seller', 'buyer', 'highest_bid', 'minimum_bid_increment', 'status',
        'seller_accepted', 'buyer_accepted', 'close_reason', 'closed_at', 'is_paid', 'paid_at',
        'payment_reference', 'checkout_session_id', 'invoice_number', 'created_at', 'updated_at',
    )

    def negotiation_state(self, obj):
        return obj.negotiation_state
    negotiation_state.short_description = "State"
