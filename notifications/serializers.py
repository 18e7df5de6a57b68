from rest_framework import serializers

from .models import AdminNotification


class AdminNotificationSerializer(serializers.ModelSerializer):
    route = serializers.CharField(read_only=True, allow_null=True)

    class Meta:
        model = AdminNotification
        fields = ['id', 'type', 'title', 'message', 'data', 'route', 'is_read', 'created_at']
        read_only_fields = fields
