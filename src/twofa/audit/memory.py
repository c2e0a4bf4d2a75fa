"""In-memory audit store for testing and development."""

from __future__ import annotations

from collections import deque
from datetime import datetime, timedelta, timezone
from itertools import islice
from typing import TYPE_CHECKING

from ..ports import IAuthAuditStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from .events import AuthAuditEvent, AuthEventType


class InMemoryAuthAuditStore(IAuthAuditStore):
    """IAuthAuditStore keeping events in a bounded in-process buffer.

    Events are lost on restart. With ``max_events`` set, the oldest events
    are dropped once the buffer is full.

    Example:
        ```python
        store = InMemoryAuthAuditStore(max_events=10_000)
        flow = EnrollmentFlow(provider, audit_store=store)

        history = await store.get_events_for_factor(factor_id)
        ```
    """

    def __init__(self, *, max_events: int | None = None) -> None:
        self._events: deque[AuthAuditEvent] = deque(maxlen=max_events)

    def _newest_first(
        self, predicate: Callable[[AuthAuditEvent], bool], limit: int
    ) -> list[AuthAuditEvent]:
        matching = (e for e in reversed(self._events) if predicate(e))
        return list(islice(matching, limit))

    async def record(self, event: AuthAuditEvent) -> None:
        self._events.append(event)

    async def get_events(
        self,
        principal_id: str,
        *,
        event_types: list[AuthEventType] | None = None,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        wanted = set(event_types or ())
        return self._newest_first(
            lambda e: e.principal_id == principal_id
            and (not wanted or e.event_type in wanted),
            limit,
        )

    async def get_events_by_type(
        self,
        event_type: AuthEventType,
        *,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        return self._newest_first(lambda e: e.event_type is event_type, limit)

    async def get_events_for_factor(
        self,
        factor_id: str,
        *,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        """Events naming ``factor_id``, most recent first."""
        return self._newest_first(lambda e: e.factor_id == factor_id, limit)

    async def get_recent_failures(
        self,
        *,
        principal_id: str | None = None,
        minutes: int = 15,
        limit: int = 100,
    ) -> list[AuthAuditEvent]:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        return self._newest_first(
            lambda e: not e.success
            and e.timestamp >= cutoff
            and (principal_id is None or e.principal_id == principal_id),
            limit,
        )

    def clear(self) -> None:
        self._events.clear()

    def count(self) -> int:
        return len(self._events)

    def count_by_type(self, event_type: AuthEventType) -> int:
        return sum(1 for e in self._events if e.event_type is event_type)


__all__: list[str] = ["InMemoryAuthAuditStore"]
