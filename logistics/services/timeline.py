"""
LOGISTICS App - Status History Timeline

Read-only view over DeliveryStatusHistory for one delivery.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from logistics.models import DeliveryStatusHistory
from logistics.transitions import classify_status, status_label

logger = logging.getLogger(__name__)

TIMELINE_ERROR_MESSAGE = "Impossible de charger l'historique des statuts."


@dataclass
class TimelineEntry:
    """One rendered step of the timeline."""
    id: int
    old_status: str
    old_label: str
    new_status: str
    new_label: str
    changed_at: datetime
    actor: Optional[str]
    note: str
    bucket: str

    @classmethod
    def from_history(cls, row: DeliveryStatusHistory) -> 'TimelineEntry':
        return cls(
            id=row.pk,
            old_status=row.old_status,
            old_label=status_label(row.old_status) if row.old_status else '',
            new_status=row.new_status,
            new_label=status_label(row.new_status),
            changed_at=row.changed_at,
            actor=row.changed_by.display_name if row.changed_by else None,
            note=row.note,
            bucket=classify_status(row.new_status),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'old_status': self.old_status,
            'old_label': self.old_label,
            'new_status': self.new_status,
            'new_label': self.new_label,
            'changed_at': self.changed_at.isoformat(),
            'actor': self.actor,
            'note': self.note,
            'bucket': self.bucket,
        }


@dataclass
class StatusTimeline:
    delivery_id: str
    entries: List[TimelineEntry] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'delivery_id': str(self.delivery_id),
            'history': [e.to_dict() for e in self.entries],
            'error': self.error,
        }


def load_status_timeline(delivery_id) -> StatusTimeline:
    """
    Transitions of a delivery, oldest first.

    A failed fetch is not fatal: the timeline comes back empty with an
    inline message.
    """
    try:
        rows = list(
            DeliveryStatusHistory.objects
            .filter(delivery_id=delivery_id)
            .select_related('changed_by')
            .order_by('changed_at', 'id')
        )
    except (DatabaseError, ValidationError) as e:
        logger.error(f"[TIMELINE] Failed to load history for {delivery_id}: {e}")
        return StatusTimeline(delivery_id=delivery_id, error=TIMELINE_ERROR_MESSAGE)

    return StatusTimeline(
        delivery_id=delivery_id,
        entries=[TimelineEntry.from_history(row) for row in rows],
    )
