"""Tests for the event sources and the chunked collector."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from downtime_patterns.domain.errors import EventSourceError
from downtime_patterns.domain.query import EventQuery, build_query
from downtime_patterns.store.event_source import EventPage
from downtime_patterns.store.fetching import CompleteFetch, TruncatedFetch, collect_events
from downtime_patterns.store.memory import InMemoryEventSource
from downtime_patterns.store.supabase_source import SupabaseEventSource

from tests.test_event import _event, _valid_event


# ── Helpers ──────────────────────────────────────────────────────────────────


def _source(n: int, **kw) -> InMemoryEventSource:
    return InMemoryEventSource(_event("RUNNING", i, **kw) for i in range(n))


class _CountingSource(InMemoryEventSource):
    """In-memory source that records every slice request."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.requests: list[tuple[int, int]] = []

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        self.requests.append((offset, limit))
        return await super().fetch_slice(query, offset, limit)


class _CappedSource(_CountingSource):
    """Serves at most *cap* rows per request, like PostgREST max-rows."""

    def __init__(self, *args, cap: int, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.cap = cap

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        return await super().fetch_slice(query, offset, min(limit, self.cap))


class _OvercountingSource(InMemoryEventSource):
    """Reports more matches than it can serve."""

    async def fetch_slice(self, query: EventQuery, offset: int, limit: int) -> EventPage:
        page = await super().fetch_slice(query, offset, limit)
        return EventPage(events=page.events, total=page.total + 5)


class _FakeRequest:
    """Records the PostgREST builder calls and answers with canned rows."""

    def __init__(self, rows: list[dict], count: int | None = None, error: Exception | None = None):
        self.calls: list[tuple] = []
        self._rows = rows
        self._count = count
        self._error = error

    def __getattr__(self, name: str):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return record

    def execute(self):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(data=self._rows, count=self._count)


class _FakeClient:
    def __init__(self, request: _FakeRequest) -> None:
        self.request = request
        self.tables: list[str] = []

    def table(self, name: str) -> _FakeRequest:
        self.tables.append(name)
        return self.request


# ── In-memory source ─────────────────────────────────────────────────────────


class TestInMemoryEventSource:
    @pytest.mark.asyncio
    async def test_pages_newest_first(self) -> None:
        source = _source(5)
        page = await source.fetch_slice(EventQuery(), offset=0, limit=2)
        assert page.total == 5
        times = [e.event_time for e in page.events]
        assert times == sorted(times, reverse=True)
        assert len(page.events) == 2

    @pytest.mark.asyncio
    async def test_last_slice_is_short(self) -> None:
        page = await _source(5).fetch_slice(EventQuery(), offset=4, limit=2)
        assert len(page.events) == 1

    @pytest.mark.asyncio
    async def test_filters_applied(self) -> None:
        source = InMemoryEventSource([
            _event("RUNNING", 0, mill="Mill 1"),
            _event("RUNNING", 1, mill="Mill 2"),
            _event("DOWNTIME", 2, mill="Mill 2"),
        ])
        page = await source.fetch_slice(build_query(mill="Mill 2", state="DOWNTIME"), 0, 10)
        assert page.total == 1
        assert page.events[0].mill == "Mill 2"

    @pytest.mark.asyncio
    async def test_available_mills_sorted_and_distinct(self) -> None:
        source = InMemoryEventSource([
            _event("RUNNING", 0, mill="Mill 3"),
            _event("RUNNING", 1, mill="Mill 1"),
            _event("RUNNING", 2, mill="Mill 3"),
        ])
        assert await source.available_mills() == ["Mill 1", "Mill 3"]

    @pytest.mark.asyncio
    async def test_latest_event_time(self) -> None:
        source = _source(4)
        latest = await source.latest_event_time("Mill 1")
        assert latest == max(e.event_time for e in (await source.fetch_slice(EventQuery(), 0, 10)).events)
        assert await source.latest_event_time("Mill 9") is None

    def test_instances_do_not_share_events(self) -> None:
        a = InMemoryEventSource()
        b = InMemoryEventSource()
        a.add(_event("RUNNING", 0))
        assert len(a) == 1
        assert len(b) == 0


# ── Collector ────────────────────────────────────────────────────────────────


class TestCollectEvents:
    @pytest.mark.asyncio
    async def test_complete_when_store_exhausted(self) -> None:
        outcome = await collect_events(_source(25), EventQuery(), max_events=100, chunk_size=10)
        assert isinstance(outcome, CompleteFetch)
        assert len(outcome.events) == 25
        assert outcome.truncated is False
        assert outcome.limit is None

    @pytest.mark.asyncio
    async def test_truncated_when_ceiling_hit(self) -> None:
        outcome = await collect_events(_source(25), EventQuery(), max_events=12, chunk_size=10)
        assert isinstance(outcome, TruncatedFetch)
        assert outcome.truncated is True
        assert outcome.limit == 12
        assert len(outcome.events) == 12

    @pytest.mark.asyncio
    async def test_exactly_at_ceiling_is_complete(self) -> None:
        source = _CountingSource(_event("RUNNING", i) for i in range(20))
        outcome = await collect_events(source, EventQuery(), max_events=20, chunk_size=10)
        assert isinstance(outcome, CompleteFetch)
        assert len(outcome.events) == 20
        assert source.requests == [(0, 10), (10, 10)]

    @pytest.mark.asyncio
    async def test_stops_once_total_is_read(self) -> None:
        source = _CountingSource(_event("RUNNING", i) for i in range(7))
        await collect_events(source, EventQuery(), max_events=100, chunk_size=10)
        assert source.requests == [(0, 10)]

    @pytest.mark.asyncio
    async def test_capped_store_is_read_in_full(self) -> None:
        source = _CappedSource((_event("RUNNING", i) for i in range(10)), cap=3)
        outcome = await collect_events(source, EventQuery(), max_events=100, chunk_size=5)
        assert isinstance(outcome, CompleteFetch)
        assert len({e.id for e in outcome.events}) == 10
        assert source.requests == [(0, 3), (3, 3), (6, 3), (9, 3)]

    @pytest.mark.asyncio
    async def test_capped_store_still_respects_ceiling(self) -> None:
        source = _CappedSource((_event("RUNNING", i) for i in range(10)), cap=3)
        outcome = await collect_events(source, EventQuery(), max_events=4, chunk_size=5)
        assert isinstance(outcome, TruncatedFetch)
        assert len(outcome.events) == 4

    @pytest.mark.asyncio
    async def test_source_running_dry_before_total_is_an_error(self) -> None:
        source = _OvercountingSource(_event("RUNNING", i) for i in range(4))
        with pytest.raises(EventSourceError, match="no rows"):
            await collect_events(source, EventQuery(), max_events=100, chunk_size=10)

    @pytest.mark.asyncio
    async def test_empty_store(self) -> None:
        outcome = await collect_events(InMemoryEventSource(), EventQuery())
        assert outcome.events == []
        assert not outcome.truncated

    @pytest.mark.asyncio
    async def test_rejects_non_positive_limits(self) -> None:
        with pytest.raises(ValueError):
            await collect_events(InMemoryEventSource(), EventQuery(), max_events=0)


# ── Supabase source ──────────────────────────────────────────────────────────


class TestSupabaseEventSource:
    @pytest.mark.asyncio
    async def test_fetch_slice_builds_filtered_query(self) -> None:
        request = _FakeRequest([_valid_event(id=7)], count=31)
        client = _FakeClient(request)
        source = SupabaseEventSource(client, table="events")
        query = build_query(
            mill="Mill 1",
            factory="Factory A",
            start_date="2026-01-01T00:00:00Z",
            end_date="2026-01-31T00:00:00Z",
        )

        page = await source.fetch_slice(query, offset=20, limit=10)

        assert client.tables == ["events"]
        assert page.total == 31
        assert page.events[0].id == "7"
        calls = {
            name: (args, kwargs)
            for name, args, kwargs in request.calls
            if name not in ("eq", "order")
        }
        assert calls["select"] == (("*",), {"count": "exact"})
        assert calls["gte"][0][0] == "event_time"
        assert calls["lte"][0][0] == "event_time"
        orders = [(args, kwargs) for name, args, kwargs in request.calls if name == "order"]
        assert orders == [(("event_time",), {"desc": True}), (("id",), {"desc": True})]
        assert calls["range"] == ((20, 29), {})
        eqs = [args for name, args, _ in request.calls if name == "eq"]
        assert ("mill", "Mill 1") in eqs
        assert ("factory", "Factory A") in eqs

    @pytest.mark.asyncio
    async def test_unset_filters_are_not_sent(self) -> None:
        request = _FakeRequest([])
        source = SupabaseEventSource(_FakeClient(request))
        page = await source.fetch_slice(EventQuery(), offset=0, limit=10)
        assert page.events == [] and page.total == 0
        assert not any(name in ("eq", "gte", "lte") for name, _, _ in request.calls)

    @pytest.mark.asyncio
    async def test_client_failure_raises_event_source_error(self) -> None:
        request = _FakeRequest([], error=RuntimeError("connection refused"))
        source = SupabaseEventSource(_FakeClient(request))
        with pytest.raises(EventSourceError, match="connection refused"):
            await source.fetch_slice(EventQuery(), offset=0, limit=10)

    @pytest.mark.asyncio
    async def test_malformed_row_raises_event_source_error(self) -> None:
        request = _FakeRequest([_valid_event(state="SLEEPING")])
        source = SupabaseEventSource(_FakeClient(request))
        with pytest.raises(EventSourceError):
            await source.fetch_slice(EventQuery(), offset=0, limit=10)

    @pytest.mark.asyncio
    async def test_available_mills(self) -> None:
        request = _FakeRequest([{"mill": "Mill 2"}, {"mill": "Mill 1"}, {"mill": ""}, {"mill": "Mill 2"}])
        source = SupabaseEventSource(_FakeClient(request))
        assert await source.available_mills() == ["Mill 1", "Mill 2"]

    @pytest.mark.asyncio
    async def test_latest_event_time(self) -> None:
        request = _FakeRequest([{"event_time": "2026-03-04T05:06:07+00:00"}])
        source = SupabaseEventSource(_FakeClient(request))
        latest = await source.latest_event_time("Mill 1")
        assert latest == datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert ("limit", (1,), {}) in request.calls

    @pytest.mark.asyncio
    async def test_latest_event_time_none_when_empty(self) -> None:
        source = SupabaseEventSource(_FakeClient(_FakeRequest([])))
        assert await source.latest_event_time("Mill 1") is None
