import logging
from typing import Dict, List, Optional

from django.db import transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from .models import (
    ChatConversation, ChatMessage, ConversationStatus,
    Incident, IncidentStatus, MessageType, SenderType,
)

logger = logging.getLogger(__name__)
chat_logger = logging.getLogger('logitrack.chat')

CONVERSATION_EVENT_FIELDS = (
    'driver_id', 'status', 'subject', 'delivery_id',
    'last_message', 'last_message_at', 'unread_count',
)


class IncidentAlreadyClosed(ValueError):
    pass


class ResolutionRequired(ValueError):
    pass


class IncidentService:
    """
    Service for handling delivery incidents.
    """

    @staticmethod
    @transaction.atomic
    def update_status(incident: Incident, status: str, actor=None, resolution: str = '') -> Incident:
        """
        Change an incident's status.

        A non-empty resolution is stored and stamps resolved_at/resolved_by.
        Moving to `resolved` requires a resolution (given now or already set).
        """
        if incident.status == IncidentStatus.CLOSED:
            raise IncidentAlreadyClosed("Cet incident est déjà clôturé.")

        resolution = (resolution or '').strip()
        if status == IncidentStatus.RESOLVED and not (resolution or incident.resolution):
            raise ResolutionRequired("Une résolution est obligatoire pour résoudre un incident.")

        old_status = incident.status
        incident.status = status
        fields = ['status', 'updated_at']
        if resolution:
            incident.resolution = resolution
            incident.resolved_at = timezone.now()
            incident.resolved_by = actor
            fields += ['resolution', 'resolved_at', 'resolved_by']
        incident.save(update_fields=fields)

        who = getattr(actor, 'phone_number', None) or 'system'
        logger.info(f"[INCIDENTS] {incident.id}: {old_status} -> {status} by {who}")
        return incident

    @staticmethod
    def get_stats() -> Dict[str, int]:
        return Incident.objects.aggregate(
            total=Count('id'),
            open=Count('id', filter=Q(status=IncidentStatus.OPEN)),
            investigating=Count('id', filter=Q(status=IncidentStatus.INVESTIGATING)),
            resolved=Count('id', filter=Q(status=IncidentStatus.RESOLVED)),
        )


class ChatService:
    """
    Support conversations with drivers.
    """

    @staticmethod
    def get_conversations(status: Optional[str] = None):
        """Conversations by most recent message; 'all' or empty means no filter."""
        qs = ChatConversation.objects.select_related('driver').order_by(
            F('last_message_at').desc(nulls_last=True), '-created_at'
        )
        if status and status != 'all':
            qs = qs.filter(status=status)
        return qs

    @staticmethod
    def get_conversation_stats() -> Dict[str, int]:
        return ChatConversation.objects.aggregate(
            total=Count('id'),
            waiting=Count('id', filter=Q(status=ConversationStatus.WAITING)),
            active=Count('id', filter=Q(status=ConversationStatus.ACTIVE)),
            resolved=Count('id', filter=Q(status=ConversationStatus.RESOLVED)),
        )

    @staticmethod
    def get_messages(conversation, limit: int = 50) -> List[ChatMessage]:
        """Latest `limit` messages, oldest first."""
        latest = ChatMessage.objects.filter(conversation=conversation).order_by('-created_at', '-id')[:limit]
        return list(reversed(latest))

    @staticmethod
    @transaction.atomic
    def send_admin_message(conversation: ChatConversation, admin, message: str) -> ChatMessage:
        message = (message or '').strip()
        if not message:
            raise ValueError("Le message ne peut pas être vide.")

        chat_message = ChatMessage.objects.create(
            conversation=conversation,
            sender_type=SenderType.SUPPORT,
            sender_id=str(admin.pk),
            sender_name=admin.display_name,
            message=message,
            message_type=MessageType.TEXT,
        )

        conversation.last_message = message[:100]
        conversation.last_message_at = timezone.now()
        conversation.status = ConversationStatus.ACTIVE
        conversation.save(update_fields=['last_message', 'last_message_at', 'status', 'updated_at'])

        chat_logger.info(f"[CHAT] Support reply in {conversation.id} by {admin.phone_number}")
        return chat_message

    @staticmethod
    @transaction.atomic
    def mark_conversation_read(conversation: ChatConversation) -> int:
        """Stamp unread driver messages and reset the counter. Returns messages marked."""
        marked = ChatMessage.objects.filter(
            conversation=conversation,
            sender_type=SenderType.DRIVER,
            read_at__isnull=True,
        ).update(read_at=timezone.now())

        conversation.unread_count = 0
        conversation.save(update_fields=['unread_count', 'updated_at'])
        return marked

    @staticmethod
    def close_conversation(conversation: ChatConversation) -> ChatConversation:
        conversation.status = ConversationStatus.RESOLVED
        conversation.save(update_fields=['status', 'updated_at'])
        chat_logger.info(f"[CHAT] Conversation {conversation.id} resolved")
        return conversation

    @staticmethod
    def reopen_conversation(conversation: ChatConversation) -> ChatConversation:
        conversation.status = ConversationStatus.ACTIVE
        conversation.save(update_fields=['status', 'updated_at'])
        chat_logger.info(f"[CHAT] Conversation {conversation.id} reopened")
        return conversation
