"""
LOGISTICS App - Realtime Refresh Listeners

A view that shows aggregates (dashboard stats, live deliveries, the
notification bell) registers a RefreshListener: a set of row-change
subscriptions plus the coroutine that reloads the whole aggregate.

Refreshes are full reloads, never patches, so the view always converges
on the latest server snapshot whatever order events arrive in.

A consumer owns one ChangeDispatcher which joins each change group once
and fans every incoming event out to its listeners.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from .events import INSERT, UPDATE, changes_group

logger = logging.getLogger(__name__)

ANY_EVENT = '*'


@dataclass(frozen=True)
class ChangeSubscription:
    """Interest in INSERT/UPDATE events on one stream, optionally filtered."""
    stream: str
    events: Tuple[str, ...] = (INSERT, UPDATE)
    filters: Dict[str, Any] = field(default_factory=dict)

    def matches(self, event: Dict[str, Any]) -> bool:
        if event.get('stream') != self.stream:
            return False
        if ANY_EVENT not in self.events and event.get('event') not in self.events:
            return False

        record = event.get('record') or {}
        for name, expected in self.filters.items():
            value = record.get(name)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True


class RefreshListener:
    """
    Triggers exactly one `on_refresh()` per matching event.

    With `debounce` > 0, events arriving inside the window share a
    single refresh that runs when the window closes. After `close()`
    nothing is refreshed any more.
    """

    def __init__(
        self,
        subscriptions: Iterable[ChangeSubscription],
        on_refresh: Callable[[], Awaitable[None]],
        debounce: float = 0.0,
        name: str = '',
    ):
        self.subscriptions: List[ChangeSubscription] = list(subscriptions)
        self.on_refresh = on_refresh
        self.debounce = debounce
        self.name = name or getattr(on_refresh, '__name__', 'listener')
        self.active = True
        self.refresh_count = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def streams(self) -> List[str]:
        return sorted({s.stream for s in self.subscriptions})

    def matches(self, event: Dict[str, Any]) -> bool:
        return any(s.matches(event) for s in self.subscriptions)

    async def notify(self, event: Dict[str, Any]) -> bool:
        """Handle one change event. Returns True if a refresh was run or scheduled."""
        if not self.active or not self.matches(event):
            return False

        if self.debounce > 0:
            if self._pending is None or self._pending.done():
                self._pending = asyncio.ensure_future(self._refresh_later())
            return True

        await self._refresh()
        return True

    async def _refresh_later(self):
        await asyncio.sleep(self.debounce)
        # Events arriving during the reload schedule a new one
        self._pending = None
        if not self.active:
            return
        try:
            await self._refresh()
        except Exception:
            # Nobody awaits this task
            logger.exception(f"[REALTIME] {self.name}: deferred refresh failed")

    async def _refresh(self):
        self.refresh_count += 1
        logger.debug(f"[REALTIME] {self.name}: refresh #{self.refresh_count}")
        await self.on_refresh()

    def close(self):
        self.active = False
        if self._pending and not self._pending.done():
            self._pending.cancel()
        self._pending = None


class ChangeDispatcher:
    """Fans change events out to the listeners of one consumer."""

    def __init__(self, *listeners: RefreshListener):
        self.listeners: List[RefreshListener] = list(listeners)

    @property
    def streams(self) -> List[str]:
        return sorted({stream for listener in self.listeners for stream in listener.streams})

    @property
    def groups(self) -> List[str]:
        return [changes_group(stream) for stream in self.streams]

    async def dispatch(self, event: Dict[str, Any]) -> int:
        """Returns how many listeners reacted to the event."""
        reacted = 0
        for listener in self.listeners:
            if await listener.notify(event):
                reacted += 1
        return reacted

    def close(self):
        for listener in self.listeners:
            listener.close()
