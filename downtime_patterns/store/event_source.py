"""Event source protocol — where historical events come from.

The service depends on this protocol only.  Swap implementations to change
the backing store without touching analysis logic:

    - SupabaseEventSource:  the persistent historical-events table.
    - InMemoryEventSource:  a list held in process, used by tests and as the
                            empty default when no store is configured.

Sources filter and serve newest first with a unique tie-breaker so
consecutive slices neither repeat nor skip rows.  Chronological sorting
for analysis belongs to the analyzers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.query import EventQuery


@dataclass(frozen=True)
class EventPage:
    """One slice of a filtered event listing plus the total match count."""

    events: list[HistoricalEvent] = field(default_factory=list)
    total: int = 0


class EventSource(Protocol):
    """Protocol for historical event stores."""

    @property
    def source_name(self) -> str:
        """Human-readable name used in logs and error messages."""
        ...

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        """Return up to *limit* events matching *query*, newest first, skipping
        the first *offset*.

        A store may return fewer than *limit* rows even when more remain
        (PostgREST caps responses at its max-rows setting); ``total`` is
        always the full match count.

        Raises:
            EventSourceError: If the store cannot be queried.
        """
        ...

    async def available_mills(self) -> list[str]:
        """Distinct non-empty mill names, sorted."""
        ...

    async def latest_event_time(self, mill: str) -> Optional[datetime]:
        """Timestamp of the newest event for *mill*, or None if it has none."""
        ...
