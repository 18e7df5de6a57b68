"""
Fleet App Serializers
"""

from rest_framework import serializers

from .models import Driver


class DriverSerializer(serializers.ModelSerializer):
    rating = serializers.FloatField(read_only=True)
    company_name = serializers.CharField(source='company.company_name', read_only=True, default=None)
    status_label = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Driver
        fields = [
            'id', 'full_name', 'phone', 'email',
            'driver_type', 'company', 'company_name',
            'vehicle_type', 'vehicle_plate',
            'status', 'status_label', 'is_online', 'is_available',
            'rating', 'rating_count', 'total_deliveries', 'total_earnings',
            'wallet_balance', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class DriverActionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')
