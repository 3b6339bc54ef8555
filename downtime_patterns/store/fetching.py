"""Chunked event collection with an explicit retrieval ceiling.

Analyses need the whole filtered log in memory.  ``collect_events`` pulls
it slice by slice until the source's reported total is read, stopping at
``max_events``.  The outcome says which of the two happened:

    CompleteFetch(events)           every matching event was retrieved
    TruncatedFetch(events, limit)   the ceiling was hit; results built from
                                    these events are a lower bound

A partial log is never handed back looking like a complete one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from downtime_patterns.domain.errors import EventSourceError
from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.query import EventQuery
from downtime_patterns.store.event_source import EventSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompleteFetch:
    events: list[HistoricalEvent]

    @property
    def truncated(self) -> bool:
        return False

    @property
    def limit(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class TruncatedFetch:
    events: list[HistoricalEvent]
    limit: int

    @property
    def truncated(self) -> bool:
        return True


FetchOutcome = Union[CompleteFetch, TruncatedFetch]


async def collect_events(
    source: EventSource,
    query: EventQuery,
    max_events: int = 50_000,
    chunk_size: int = 10_000,
) -> FetchOutcome:
    """Fetch every event matching *query*, up to *max_events*.

    Slices are requested until the source's reported total has been read.
    The offset advances by the rows actually received, so a store that
    caps response size below *chunk_size* is still read in full.

    Raises:
        ValueError: If *max_events* or *chunk_size* is not positive.
        EventSourceError: Propagated from the source, or raised when the
            source runs dry before its reported total.
    """
    if max_events < 1 or chunk_size < 1:
        raise ValueError("max_events and chunk_size must be positive")

    events: list[HistoricalEvent] = []
    while True:
        offset = len(events)
        batch = await source.fetch_slice(query, offset, chunk_size)
        events.extend(batch.events)
        logger.debug("%s: rows from %d returned %d of %d",
                     source.source_name, offset, len(batch.events), batch.total)

        if len(events) >= batch.total and len(events) <= max_events:
            return CompleteFetch(events=events)
        if len(events) >= max_events:
            logger.warning(
                "%s: %d event(s) match but the ceiling is %d; narrow the date range or add filters",
                source.source_name, batch.total, max_events,
            )
            return TruncatedFetch(events=events[:max_events], limit=max_events)
        if not batch.events:
            raise EventSourceError(
                source.source_name,
                f"returned no rows at offset {offset} of a reported {batch.total}",
            )
