"""
DRAFTS App - Debounced form autosave

FormAutosave tracks one form while it is open:

- change(data) restarts the debounce; when it expires the draft is written
- just_saved stays True for a short while after each write
- restore() hands the draft back, discard() removes it
- close() cancels pending timers; nothing is written after it
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from asgiref.sync import sync_to_async
from django.conf import settings

from .store import Draft, DraftStore

logger = logging.getLogger(__name__)


class FormAutosave:

    def __init__(
        self,
        store: DraftStore,
        form_key: str,
        delay: Optional[float] = None,
        just_saved_for: Optional[float] = None,
        on_saved: Optional[Callable[[Draft], Awaitable[None]]] = None,
    ):
        self.store = store
        self.form_key = form_key
        self.delay = settings.AUTOSAVE_DEBOUNCE_MS / 1000.0 if delay is None else delay
        self.just_saved_for = (
            settings.AUTOSAVE_JUST_SAVED_MS / 1000.0 if just_saved_for is None else just_saved_for
        )
        self.on_saved = on_saved

        self.is_open = False
        self.has_draft = False
        self.draft_saved_at: Optional[datetime] = None
        self.just_saved = False

        self._save_task: Optional[asyncio.Task] = None
        self._just_saved_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> dict:
        return {
            'form_key': self.form_key,
            'has_draft': self.has_draft,
            'saved_at': self.draft_saved_at.isoformat() if self.draft_saved_at else None,
            'just_saved': self.just_saved,
        }

    async def open(self) -> dict:
        """Start tracking; report any draft left from earlier in the session."""
        draft = await sync_to_async(self.store.load)(self.form_key)
        self.is_open = True
        self.has_draft = draft is not None
        self.draft_saved_at = draft.saved_at if draft else None
        return self.state

    def change(self, form_data: Any) -> bool:
        """Schedule a write of `form_data`. Ignored while closed."""
        if not self.is_open:
            return False
        self._cancel(self._save_task)
        self._save_task = asyncio.ensure_future(self._save_later(form_data))
        return True

    async def _save_later(self, form_data: Any):
        await asyncio.sleep(self.delay)
        draft = await sync_to_async(self.store.save)(self.form_key, form_data)
        self.has_draft = True
        self.draft_saved_at = draft.saved_at

        self.just_saved = True
        self._cancel(self._just_saved_task)
        self._just_saved_task = asyncio.ensure_future(self._clear_just_saved())

        if self.on_saved is not None:
            await self.on_saved(draft)

    async def _clear_just_saved(self):
        await asyncio.sleep(self.just_saved_for)
        self.just_saved = False

    async def restore(self) -> Any:
        """Draft data for the caller to load into its form, or None."""
        draft = await sync_to_async(self.store.load)(self.form_key)
        if draft is None:
            return None
        self.has_draft = False
        return draft.data

    async def discard(self):
        self._cancel(self._save_task)
        await sync_to_async(self.store.discard)(self.form_key)
        self.has_draft = False
        self.draft_saved_at = None
        logger.debug(f"[DRAFTS] Discarded {self.form_key}")

    def close(self):
        self.is_open = False
        self._cancel(self._save_task)
        self._cancel(self._just_saved_task)
        self._save_task = None
        self._just_saved_task = None
        self.just_saved = False

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]):
        if task is not None and not task.done():
            task.cancel()
