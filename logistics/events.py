"""
LOGISTICS App - Real-time Event Broadcasting

Utility functions to broadcast row-change events via Django Channels.
Used by the post_save signals of every tracked model, once the
transaction commits.

Each tracked stream has one group, `changes_<stream>`; consumers join the
groups their RefreshListener subscribes to.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

INSERT = 'INSERT'
UPDATE = 'UPDATE'

STREAM_DELIVERIES = 'deliveries'
STREAM_DRIVERS = 'drivers'
STREAM_NOTIFICATIONS = 'admin_notifications'
STREAM_INCIDENTS = 'incidents'
STREAM_CHAT_MESSAGES = 'chat_messages'
STREAM_CHAT_CONVERSATIONS = 'chat_conversations'


def get_channel_layer():
    """Get the Django Channels layer (lazy import)."""
    from channels.layers import get_channel_layer as _get_channel_layer
    return _get_channel_layer()


def changes_group(stream: str) -> str:
    return f'changes_{stream}'


def typing_group(conversation_id) -> str:
    return f'typing_{conversation_id}'


def _send_group_event(group_name: str, event: dict) -> bool:
    """Send event to a channel group. Failures are logged, never raised."""
    channel_layer = get_channel_layer()
    if not channel_layer:
        return False

    try:
        from asgiref.sync import async_to_sync
        async_to_sync(channel_layer.group_send)(group_name, event)
        return True
    except Exception as e:  # transport errors must not break the write
        logger.warning(f"[EVENTS] Failed to send to group {group_name}: {e}")
        return False


def _plain(value: Any) -> Any:
    """Make a field value safe for the channel layer (msgpack/JSON)."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    return value


def serialize_record(instance, fields: Iterable[str]) -> Dict[str, Any]:
    """Flatten the given model fields (FKs as `<name>_id`) into a plain dict."""
    record = {'id': _plain(instance.pk)}
    for name in fields:
        record[name] = _plain(getattr(instance, name, None))
    return record


# ============================================
# ROW CHANGE EVENTS
# ============================================

def broadcast_record_change(stream: str, event: str, record: Dict[str, Any]) -> bool:
    """
    Broadcast an INSERT/UPDATE on `stream` to every subscribed consumer.

    Consumers receive it in their `record_change` handler.
    """
    sent = _send_group_event(
        changes_group(stream),
        {
            'type': 'record.change',
            'stream': stream,
            'event': event,
            'record': record,
        }
    )
    logger.debug(f"[EVENTS] {event} on {stream}: {record.get('id')}")
    return sent


# ============================================
# TYPING INDICATOR
# ============================================

def typing_event(
    conversation_id,
    sender_type: str,
    sender_name: str,
    sender_channel: Optional[str] = None
) -> Dict[str, Any]:
    """Typing indicator for a support conversation; nothing is stored."""
    return {
        'type': 'chat.typing',
        'conversation_id': str(conversation_id),
        'sender_type': sender_type,
        'sender_name': sender_name,
        'sender_channel': sender_channel,
    }
