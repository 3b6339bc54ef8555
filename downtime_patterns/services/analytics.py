"""DowntimeAnalyticsService — validate, collect, analyze.

Wires an EventSource to the two pure analyzers.  Every public method:

    1. rejects bad parameters before touching the store,
    2. awaits the event source (paged, bounded by the ceiling),
    3. runs the synchronous scan over the materialized events,
    4. marks the report truncated when the ceiling was hit.

Store failures propagate as EventSourceError; nothing is substituted.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Optional

from downtime_patterns.core.recurrence_detector import RapidRecurrenceDetector, check_threshold
from downtime_patterns.core.transition_analyzer import TransitionAnalyzer
from downtime_patterns.domain.browsing import DateRange, HistoricalEventsPage
from downtime_patterns.domain.enums import GroupingDimension, PrecedingReasonPolicy, SequenceScope
from downtime_patterns.domain.errors import InvalidQueryError
from downtime_patterns.domain.query import EventQuery
from downtime_patterns.domain.recurrence import RapidRecurrenceReport
from downtime_patterns.domain.transitions import DowntimeTransitionsReport
from downtime_patterns.foundation.clock import utc_now
from downtime_patterns.store.event_source import EventSource
from downtime_patterns.store.fetching import collect_events

logger = logging.getLogger(__name__)


class DowntimeAnalyticsService:
    """Request-level orchestration over an injected EventSource.

    Args:
        source: Where events come from.
        detector: Rapid-recurrence detector (stateless, shared).
        analyzer: Transition analyzer (stateless, shared).
        max_events: Retrieval ceiling per analysis request.
        chunk_size: Page size used while collecting events.
        default_range_days: Width of the suggested browsing window.
    """

    def __init__(
        self,
        source: EventSource,
        detector: RapidRecurrenceDetector | None = None,
        analyzer: TransitionAnalyzer | None = None,
        max_events: int = 50_000,
        chunk_size: int = 10_000,
        default_range_days: int = 7,
    ) -> None:
        self._source = source
        self._detector = detector or RapidRecurrenceDetector()
        self._analyzer = analyzer or TransitionAnalyzer()
        self._max_events = max_events
        self._chunk_size = chunk_size
        self._default_range = timedelta(days=default_range_days)

    @property
    def source_name(self) -> str:
        return self._source.source_name

    @property
    def max_events(self) -> int:
        return self._max_events

    # ── Analyses ─────────────────────────────────────────────────────────

    async def rapid_recurrence(
        self,
        query: EventQuery,
        threshold_minutes: float = 20.0,
        policy: Optional[PrecedingReasonPolicy] = None,
    ) -> RapidRecurrenceReport:
        check_threshold(threshold_minutes)
        detector = self._detector if policy is None else self._detector.with_policy(policy)

        outcome = await collect_events(self._source, query, self._max_events, self._chunk_size)
        logger.info("Rapid recurrence scan over %d event(s) (mill=%s, factory=%s)",
                    len(outcome.events), query.mill, query.factory)
        report = detector.build_report(outcome.events, threshold_minutes)
        return report.model_copy(update={"truncated": outcome.truncated, "event_limit": outcome.limit})

    async def downtime_transitions(
        self,
        query: EventQuery,
        grouping: GroupingDimension = GroupingDimension.REASON,
        top_n: int = 12,
        from_value: Optional[str] = None,
        to_value: Optional[str] = None,
        scope: SequenceScope = SequenceScope.POOLED,
    ) -> DowntimeTransitionsReport:
        if top_n < 1:
            raise InvalidQueryError(f"topN must be at least 1, got {top_n}")

        outcome = await collect_events(self._source, query, self._max_events, self._chunk_size)
        logger.info("Transition scan over %d event(s) (grouping=%s, scope=%s)",
                    len(outcome.events), grouping.value, scope.value)
        report = self._analyzer.analyze(
            outcome.events,
            grouping=grouping,
            top_n=top_n,
            from_value=from_value or None,
            to_value=to_value or None,
            scope=scope,
        )
        return report.model_copy(update={"truncated": outcome.truncated, "event_limit": outcome.limit})

    # ── Browsing ─────────────────────────────────────────────────────────

    async def historical_events(
        self,
        query: EventQuery,
        page: int = 1,
        page_size: int = 50,
    ) -> HistoricalEventsPage:
        if page < 1:
            raise InvalidQueryError(f"page must be at least 1, got {page}")
        if page_size < 1:
            raise InvalidQueryError(f"pageSize must be at least 1, got {page_size}")

        result = await self._source.fetch_slice(query, (page - 1) * page_size, page_size)
        return HistoricalEventsPage(
            events=result.events,
            total=result.total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(result.total / page_size),
        )

    async def available_mills(self) -> list[str]:
        return await self._source.available_mills()

    async def default_date_range(self, mill: str) -> DateRange:
        """The window of ``default_range_days`` ending at the mill's newest event.

        Falls back to ending now when the mill has no events.
        """
        end = await self._source.latest_event_time(mill)
        if end is None:
            end = utc_now()
        return DateRange(start_date=end - self._default_range, end_date=end)
