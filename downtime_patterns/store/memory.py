"""In-memory event source.

Holds events in a list owned by the instance.  Nothing is shared between
instances, so each test (or app) gets its own store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.query import EventQuery
from downtime_patterns.store.event_source import EventPage

logger = logging.getLogger(__name__)


class InMemoryEventSource:
    """EventSource backed by a plain list.

    Slices are served newest first, ordered by (event_time, id) like the
    persistent store.
    """

    def __init__(self, events: Iterable[HistoricalEvent] = ()) -> None:
        self._events: list[HistoricalEvent] = list(events)

    @property
    def source_name(self) -> str:
        return "memory"

    def add(self, *events: HistoricalEvent) -> None:
        self._events.extend(events)

    def __len__(self) -> int:
        return len(self._events)

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        matching = [e for e in self._events if query.matches(e)]
        matching.sort(key=lambda e: (e.event_time, e.id), reverse=True)
        logger.debug("memory slice %d+%d: %d match(es)", offset, limit, len(matching))
        return EventPage(events=matching[offset:offset + limit], total=len(matching))

    async def available_mills(self) -> list[str]:
        return sorted({e.mill for e in self._events if e.mill})

    async def latest_event_time(self, mill: str) -> Optional[datetime]:
        times = [e.event_time for e in self._events if e.mill == mill]
        return max(times) if times else None
