from django.contrib import admin

from .models import Delivery, DeliveryStatusHistory, Listing


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ('title', 'seller', 'price', 'status', 'buyer', 'final_price', 'created_at')
    list_filter = ('status', 'category', 'created_at')
    search_fields = ('title', 'description', 'seller__email')
    readonly_fields = ('id', 'buyer', 'final_price', 'status_updated_by', 'closed_at', 'created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('id', 'seller', 'title', 'description', 'category', 'price')
        }),
        ('Sale', {
            'fields': ('status', 'buyer', 'final_price', 'status_updated_by', 'closed_at')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class DeliveryStatusHistoryInline(admin.TabularInline):
    model = DeliveryStatusHistory
    extra = 0
    fields = ('status', 'notes', 'updated_by', 'timestamp')
    readonly_fields = ('status', 'notes', 'updated_by', 'timestamp')
    can_delete = False


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ('tracking_number', 'listing', 'seller', 'buyer', 'delivery_partner', 'status', 'expected_delivery_date')
    list_filter = ('status', 'created_at')
    search_fields = ('tracking_number', 'listing__title', 'buyer__email', 'seller__email')
    readonly_fields = ('id', 'listing', 'seller', 'buyer', 'tracking_number', 'status', 'delivered_at', 'created_at', 'updated_at')
    inlines = [DeliveryStatusHistoryInline]
