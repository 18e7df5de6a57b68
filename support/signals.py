"""
Support signals: realtime change events for incidents and chat, and the
unread counter of driver messages.

Events are sent once the row is committed, since listeners refetch.
"""

import logging
from django.db import transaction
from django.db.models import F
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone

from logistics.events import (
    INSERT, UPDATE,
    STREAM_CHAT_CONVERSATIONS, STREAM_CHAT_MESSAGES, STREAM_INCIDENTS,
    broadcast_record_change, serialize_record,
)
from .models import ChatConversation, ChatMessage, Incident, SenderType
from .services import CONVERSATION_EVENT_FIELDS

logger = logging.getLogger('logitrack.chat')

INCIDENT_EVENT_FIELDS = (
    'delivery_id', 'incident_type', 'severity', 'status', 'title', 'resolved_at',
)
MESSAGE_EVENT_FIELDS = (
    'conversation_id', 'sender_type', 'sender_id', 'sender_name',
    'message', 'message_type', 'metadata', 'read_at', 'created_at',
)


def _event(created):
    return INSERT if created else UPDATE


def _broadcast_on_commit(stream, event, record):
    transaction.on_commit(lambda: broadcast_record_change(stream, event, record))


@receiver(post_save, sender=Incident)
def broadcast_incident_change(sender, instance, created, **kwargs):
    _broadcast_on_commit(
        STREAM_INCIDENTS, _event(created),
        serialize_record(instance, INCIDENT_EVENT_FIELDS),
    )


@receiver(post_save, sender=ChatConversation)
def broadcast_conversation_change(sender, instance, created, **kwargs):
    _broadcast_on_commit(
        STREAM_CHAT_CONVERSATIONS, _event(created),
        serialize_record(instance, CONVERSATION_EVENT_FIELDS),
    )


@receiver(post_save, sender=ChatMessage)
def broadcast_message_change(sender, instance, created, **kwargs):
    _broadcast_on_commit(
        STREAM_CHAT_MESSAGES, _event(created),
        serialize_record(instance, MESSAGE_EVENT_FIELDS),
    )


@receiver(post_save, sender=ChatMessage)
def count_driver_message(sender, instance, created, **kwargs):
    """A new driver message bumps the unread counter and the conversation preview."""
    if not created or instance.sender_type != SenderType.DRIVER:
        return

    ChatConversation.objects.filter(pk=instance.conversation_id).update(
        unread_count=F('unread_count') + 1,
        last_message=instance.message[:100],
        last_message_at=instance.created_at,
        updated_at=timezone.now(),
    )
    # Queryset update skips post_save
    conversation = ChatConversation.objects.get(pk=instance.conversation_id)
    _broadcast_on_commit(
        STREAM_CHAT_CONVERSATIONS, UPDATE,
        serialize_record(conversation, CONVERSATION_EVENT_FIELDS),
    )
    logger.debug(f"[CHAT] Driver message in {conversation.id} (unread={conversation.unread_count})")
