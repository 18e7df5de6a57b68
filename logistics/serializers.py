"""
Logistics App Serializers - Deliveries, Status Changes & Zones
"""

from decimal import Decimal
from rest_framework import serializers

from .models import Delivery, DeliveryStatus, Zone
from .transitions import STATUS_BADGES, get_admin_transitions


class DeliverySerializer(serializers.ModelSerializer):
    """Full serializer for Delivery model (admin table + detail)."""

    status_label = serializers.CharField(read_only=True)
    status_badge = serializers.SerializerMethodField()
    bucket = serializers.CharField(read_only=True)
    allowed_transitions = serializers.SerializerMethodField()
    client_name = serializers.CharField(source='business_client.company_name', read_only=True, default=None)
    company_name = serializers.CharField(source='company.company_name', read_only=True, default=None)
    driver_name = serializers.CharField(source='driver.full_name', read_only=True, default=None)
    driver_phone = serializers.CharField(source='driver.phone', read_only=True, default=None)

    class Meta:
        model = Delivery
        fields = [
            'id', 'tracking_code',
            'business_client', 'client_name', 'company', 'company_name',
            'driver', 'driver_name', 'driver_phone',
            'status', 'status_label', 'status_badge', 'bucket', 'allowed_transitions',
            'pickup_address', 'pickup_latitude', 'pickup_longitude',
            'pickup_contact_name', 'pickup_contact_phone',
            'delivery_address', 'delivery_latitude', 'delivery_longitude',
            'recipient_name', 'recipient_phone',
            'package_description', 'package_size',
            'total_price', 'driver_earnings', 'company_earnings', 'platform_fee',
            'payment_method', 'payment_status', 'notes',
            'scheduled_pickup_time', 'scheduled_delivery_time',
            'picked_up_at', 'delivered_at', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'tracking_code', 'status',
            'picked_up_at', 'delivered_at', 'created_at', 'updated_at',
        ]

    def get_status_badge(self, obj) -> str:
        return STATUS_BADGES.get(obj.status, 'default')

    def get_allowed_transitions(self, obj):
        return get_admin_transitions(obj.status)


class DeliveryStatusUpdateSerializer(serializers.Serializer):
    """Admin status change request."""

    status = serializers.ChoiceField(choices=DeliveryStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')


class ZoneSerializer(serializers.ModelSerializer):
    """
    Zone with pricing checks: prices >= 0 and min_price <= max_price.

    A max_price of 0 means "no maximum".
    """

    base_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('500')
    )
    price_per_km = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('100')
    )
    min_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('500')
    )
    max_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'),
        required=False, allow_null=True
    )

    class Meta:
        model = Zone
        fields = [
            'id', 'name', 'city', 'country',
            'base_price', 'price_per_km', 'min_price', 'max_price',
            'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {
                'required': "Le nom de la zone est obligatoire.",
                'blank': "Le nom de la zone est obligatoire.",
            }},
            'city': {'error_messages': {
                'required': "La ville est obligatoire.",
                'blank': "La ville est obligatoire.",
            }},
        }

    def validate_max_price(self, value):
        return value or None

    def validate(self, attrs):
        min_price = attrs.get('min_price', getattr(self.instance, 'min_price', None))
        max_price = attrs.get('max_price', getattr(self.instance, 'max_price', None))
        if max_price and min_price is not None and min_price > max_price:
            raise serializers.ValidationError({
                'max_price': "Le prix maximum doit être supérieur ou égal au prix minimum."
            })
        return attrs
