"""
Django Admin configuration for LOGISTICS app.
"""

from django.contrib import admin
from .models import Delivery, DeliveryStatusHistory, Zone


@admin.register(Zone)
class ZoneAdmin(admin.ModelAdmin):
    list_display = ('name', 'city', 'base_price', 'price_per_km', 'min_price', 'max_price', 'is_active')
    list_filter = ('city', 'is_active')
    search_fields = ('name', 'city')
    ordering = ('city', 'name')


class StatusHistoryInline(admin.TabularInline):
    """History is append-only: shown, never edited."""

    model = DeliveryStatusHistory
    extra = 0
    fields = ('changed_at', 'old_status', 'new_status', 'changed_by', 'note')
    readonly_fields = fields
    ordering = ('changed_at', 'id')

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = (
        'tracking_code', 'status', 'business_client', 'driver',
        'total_price', 'created_at'
    )
    list_filter = ('status', 'payment_method', 'payment_status')
    search_fields = ('tracking_code', 'pickup_address', 'delivery_address', 'recipient_name')
    readonly_fields = ('tracking_code', 'status', 'picked_up_at', 'delivered_at', 'created_at', 'updated_at')
    raw_id_fields = ('business_client', 'company', 'driver')
    inlines = [StatusHistoryInline]
    date_hierarchy = 'created_at'
