"""Supabase-backed event source.

Reads the historical machine-state table (``seed_mill_events_historical``
by default) through the supabase client.  The client is synchronous, so
every query runs in a worker thread to keep the event loop free.

Any client or row-validation failure is raised as EventSourceError.  This
module never substitutes data of its own.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError
from supabase import Client, create_client

from downtime_patterns.domain.errors import EventSourceError
from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.query import EventQuery
from downtime_patterns.foundation.clock import ensure_utc
from downtime_patterns.store.event_source import EventPage

logger = logging.getLogger(__name__)


class SupabaseEventSource:
    """EventSource over a Supabase/PostgREST table.

    Args:
        client: A configured supabase ``Client``.
        table: Name of the historical events table.
    """

    def __init__(self, client: Client, table: str = "seed_mill_events_historical") -> None:
        self._client = client
        self._table = table

    @classmethod
    def from_credentials(cls, url: str, key: str, table: str) -> "SupabaseEventSource":
        return cls(create_client(url, key), table=table)

    @property
    def source_name(self) -> str:
        return f"supabase:{self._table}"

    # ── Public API ───────────────────────────────────────────────────────

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        end = offset + limit - 1

        def run() -> Any:
            request = self._client.table(self._table).select("*", count="exact")
            if query.mill:
                request = request.eq("mill", query.mill)
            if query.factory:
                request = request.eq("factory", query.factory)
            if query.start_date:
                request = request.gte("event_time", query.start_date.isoformat())
            if query.end_date:
                request = request.lte("event_time", query.end_date.isoformat())
            if query.state:
                request = request.eq("state", query.state.value)
            return (
                request.order("event_time", desc=True)
                .order("id", desc=True)
                .range(offset, end)
                .execute()
            )

        response = await self._execute(run, f"fetch rows {offset}-{end}")
        rows = response.data or []
        events = [self._parse_row(row) for row in rows]
        total = response.count if response.count is not None else len(events)
        logger.debug("%s rows from %d: %d of %d", self.source_name, offset, len(events), total)
        return EventPage(events=events, total=total)

    async def available_mills(self) -> list[str]:
        def run() -> Any:
            return self._client.table(self._table).select("mill").order("mill").execute()

        response = await self._execute(run, "list mills")
        mills = {row.get("mill") for row in response.data or []}
        return sorted(m for m in mills if isinstance(m, str) and m)

    async def latest_event_time(self, mill: str) -> Optional[datetime]:
        def run() -> Any:
            return (
                self._client.table(self._table)
                .select("event_time")
                .eq("mill", mill)
                .order("event_time", desc=True)
                .limit(1)
                .execute()
            )

        response = await self._execute(run, f"latest event for {mill}")
        rows = response.data or []
        if not rows:
            return None
        return ensure_utc(datetime.fromisoformat(str(rows[0]["event_time"])))

    # ── Internals ────────────────────────────────────────────────────────

    async def _execute(self, run: Callable[[], Any], action: str) -> Any:
        try:
            return await asyncio.to_thread(run)
        except Exception as exc:
            logger.error("%s: %s failed: %s", self.source_name, action, exc)
            raise EventSourceError(self.source_name, f"{action}: {exc}") from exc

    def _parse_row(self, row: dict[str, Any]) -> HistoricalEvent:
        try:
            return HistoricalEvent.model_validate(row)
        except ValidationError as exc:
            raise EventSourceError(
                self.source_name, f"malformed row {row.get('id')!r}: {exc.error_count()} error(s)"
            ) from exc
