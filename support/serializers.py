"""
Support App Serializers - Incidents & Chat
"""

from rest_framework import serializers

from .models import ChatConversation, ChatMessage, Incident, IncidentStatus


class IncidentSerializer(serializers.ModelSerializer):
    tracking_code = serializers.CharField(source='delivery.tracking_code', read_only=True)
    pickup_address = serializers.CharField(source='delivery.pickup_address', read_only=True)
    delivery_address = serializers.CharField(source='delivery.delivery_address', read_only=True)
    resolved_by_name = serializers.CharField(source='resolved_by.display_name', read_only=True, default=None)

    class Meta:
        model = Incident
        fields = [
            'id', 'delivery', 'tracking_code', 'pickup_address', 'delivery_address',
            'reported_by_type', 'reported_by_id', 'incident_type', 'severity', 'status',
            'title', 'description', 'resolution', 'resolved_by', 'resolved_by_name',
            'resolved_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class IncidentStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=IncidentStatus.choices)
    resolution = serializers.CharField(required=False, allow_blank=True, default='')


class ChatConversationSerializer(serializers.ModelSerializer):
    driver_name = serializers.CharField(source='driver.full_name', read_only=True)
    driver_phone = serializers.CharField(source='driver.phone', read_only=True)

    class Meta:
        model = ChatConversation
        fields = [
            'id', 'driver', 'driver_name', 'driver_phone', 'status', 'subject',
            'delivery', 'last_message', 'last_message_at', 'unread_count',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ChatMessageSerializer(serializers.ModelSerializer):

    class Meta:
        model = ChatMessage
        fields = [
            'id', 'conversation', 'sender_type', 'sender_id', 'sender_name',
            'message', 'message_type', 'metadata', 'read_at', 'created_at',
        ]
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=4000, trim_whitespace=True)
