"""
Support App Views - Incidents & driver chat
"""

import logging
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Incident
from .serializers import (
    ChatConversationSerializer,
    ChatMessageSerializer,
    IncidentSerializer,
    IncidentStatusUpdateSerializer,
    SendMessageSerializer,
)
from .services import ChatService, IncidentService

logger = logging.getLogger(__name__)


class IncidentViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    """
    Incidents, newest first.

    Filters: ?status=&severity=&incident_type=
    """

    queryset = Incident.objects.select_related('delivery', 'resolved_by')
    serializer_class = IncidentSerializer
    filterset_fields = ['status', 'severity', 'incident_type']
    search_fields = ['title', 'description', 'delivery__tracking_code']

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(IncidentService.get_stats())

    @action(detail=True, methods=['post'], url_path='update-status')
    def update_status(self, request, pk=None):
        incident = self.get_object()
        serializer = IncidentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            incident = IncidentService.update_status(
                incident,
                serializer.validated_data['status'],
                actor=request.user,
                resolution=serializer.validated_data['resolution'],
            )
        except ValueError as e:
            logger.warning(f"[INCIDENTS] Update refused for {pk}: {e}")
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(self.get_serializer(incident).data)


class ChatConversationViewSet(mixins.ListModelMixin,
                              mixins.RetrieveModelMixin,
                              viewsets.GenericViewSet):
    """
    Support conversations with drivers.

    ?status=all|waiting|active|resolved on the list.
    """

    serializer_class = ChatConversationSerializer
    pagination_class = None

    def get_queryset(self):
        return ChatService.get_conversations(self.request.query_params.get('status'))

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(ChatService.get_conversation_stats())

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        """GET the latest messages (oldest first); POST a support reply."""
        conversation = self.get_object()

        if request.method == 'GET':
            messages = ChatService.get_messages(conversation)
            return Response(ChatMessageSerializer(messages, many=True).data)

        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            message = ChatService.send_admin_message(
                conversation, request.user, serializer.validated_data['message']
            )
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ChatMessageSerializer(message).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        conversation = self.get_object()
        marked = ChatService.mark_conversation_read(conversation)
        return Response({'marked': marked, 'unread_count': 0})

    @action(detail=True, methods=['post'])
    def close(self, request, pk=None):
        conversation = ChatService.close_conversation(self.get_object())
        return Response(self.get_serializer(conversation).data)

    @action(detail=True, methods=['post'])
    def reopen(self, request, pk=None):
        conversation = ChatService.reopen_conversation(self.get_object())
        return Response(self.get_serializer(conversation).data)
