"""
Django Admin configuration for FLEET app.
"""

from django.contrib import admin
from .models import Driver


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = (
        'full_name', 'phone', 'driver_type', 'company', 'vehicle_type',
        'status', 'is_online', 'total_deliveries',
    )
    list_filter = ('status', 'driver_type', 'vehicle_type', 'is_online')
    search_fields = ('full_name', 'phone', 'vehicle_plate')
    raw_id_fields = ('company',)
    readonly_fields = ('rating_sum', 'rating_count', 'total_deliveries', 'total_earnings', 'created_at', 'updated_at')
