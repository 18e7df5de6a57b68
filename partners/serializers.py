"""
Partners App Serializers
"""

from rest_framework import serializers

from .models import BusinessClient, ClientAPIKey, DeliveryCompany, KeyEnvironment


class BusinessClientSerializer(serializers.ModelSerializer):
    active_keys = serializers.SerializerMethodField()

    class Meta:
        model = BusinessClient
        fields = [
            'id', 'company_name', 'contact_email', 'contact_phone', 'webhook_url',
            'plan', 'status', 'settings', 'active_keys', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'status', 'created_at', 'updated_at']

    def get_active_keys(self, obj) -> int:
        return obj.api_keys.filter(revoked=False).count()


class ClientAPIKeySerializer(serializers.ModelSerializer):
    """Key metadata. The full key is never readable after creation."""

    client_name = serializers.CharField(source='client.company_name', read_only=True)

    class Meta:
        model = ClientAPIKey
        fields = [
            'id', 'name', 'prefix', 'client', 'client_name', 'environment',
            'permissions', 'revoked', 'expiry_date', 'total_requests',
            'last_used_at', 'created',
        ]
        read_only_fields = [
            'id', 'prefix', 'revoked', 'total_requests', 'last_used_at', 'created',
        ]


class APIKeyCreateSerializer(serializers.Serializer):
    client = serializers.PrimaryKeyRelatedField(queryset=BusinessClient.objects.all())
    name = serializers.CharField(max_length=50)
    environment = serializers.ChoiceField(choices=KeyEnvironment.choices, default=KeyEnvironment.TEST)
    permissions = serializers.ListField(
        child=serializers.CharField(max_length=50), required=False
    )


class DeliveryCompanySerializer(serializers.ModelSerializer):
    driver_count = serializers.SerializerMethodField()

    class Meta:
        model = DeliveryCompany
        fields = [
            'id', 'company_name', 'legal_name', 'registration_number',
            'email', 'phone', 'address', 'city', 'country', 'owner_name',
            'status', 'commission_rate', 'min_commission', 'driver_count',
            'created_at', 'updated_at', 'verified_at',
        ]
        read_only_fields = ['id', 'status', 'created_at', 'updated_at', 'verified_at']

    def get_driver_count(self, obj) -> int:
        return obj.drivers.count()
