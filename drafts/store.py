"""
DRAFTS App - Session-scoped draft storage

A draft is an in-progress form snapshot kept in the user's session under
`draft_<form_key>`, as a JSON string {"data": ..., "savedAt": ISO-8601}.
Drafts die with the session.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, MutableMapping, Optional

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)

DRAFT_KEY_PREFIX = 'draft_'


@dataclass
class Draft:
    data: Any
    saved_at: datetime

    def to_dict(self) -> dict:
        return {'data': self.data, 'saved_at': self.saved_at.isoformat()}


class DraftStore:
    """
    Wraps a session mapping (request.session, scope['session'] or a dict).

    The caller owns the mapping and decides when to persist it.
    """

    def __init__(self, storage: MutableMapping):
        self.storage = storage

    @staticmethod
    def storage_key(form_key: str) -> str:
        return f'{DRAFT_KEY_PREFIX}{form_key}'

    def load(self, form_key: str) -> Optional[Draft]:
        """The stored draft, or None. A corrupt entry is removed."""
        key = self.storage_key(form_key)
        raw = self.storage.get(key)
        if raw is None:
            return None

        try:
            parsed = json.loads(raw)
            saved_at = parse_datetime(parsed['savedAt'])
            if saved_at is None:
                raise ValueError(f"bad savedAt {parsed['savedAt']!r}")
            return Draft(data=parsed['data'], saved_at=saved_at)
        except (TypeError, ValueError, KeyError) as e:
            logger.warning(f"[DRAFTS] Dropping corrupt draft {key}: {e}")
            self.storage.pop(key, None)
            return None

    def save(self, form_key: str, data: Any) -> Draft:
        saved_at = timezone.now()
        self.storage[self.storage_key(form_key)] = json.dumps(
            {'data': data, 'savedAt': saved_at.isoformat()},
            cls=DjangoJSONEncoder,
        )
        logger.debug(f"[DRAFTS] Saved {form_key}")
        return Draft(data=data, saved_at=saved_at)

    def discard(self, form_key: str) -> bool:
        """Remove the draft. Returns True if one existed."""
        return self.storage.pop(self.storage_key(form_key), None) is not None
