"""RapidRecurrenceDetector — finds restarts that fail again too quickly.

Design principles:
    1. Pure function: accepts events, returns a RapidRecurrenceReport.
    2. No side effects, no I/O, no mutation of the input events.
    3. Mills are scanned independently; there is no cross-mill detection.

Scan, per mill, over events sorted by event_time:

    restart          DOWNTIME at i, RUNNING at i+1
    subsequent stop  the first j > i+1 with RUNNING at j-1 and DOWNTIME at j
    run duration     stop.event_time - restart.event_time   (minutes)

A restart is reported when run duration < threshold.  Only the first
subsequent stop is examined, so a restart appears in at most one result.

Drill-down context for each result:
    - preceding downtime: the maximal run of DOWNTIME events ending at i,
      measured from its first event to the restart.
    - subsequent downtime: from the stop to the next RUNNING event, or the
      stop's own ``minutes`` when the mill never restarts in the window.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from downtime_patterns.core.sequencing import partition_by_mill
from downtime_patterns.core.stats import (
    label_or_unknown,
    mean,
    monthly_counts,
    most_common,
    ranked_counts,
)
from downtime_patterns.domain.enums import PrecedingReasonPolicy
from downtime_patterns.domain.errors import InvalidQueryError
from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.recurrence import (
    MonthlyTrendPoint,
    PrecedingReasonStat,
    RapidRecurrenceEvent,
    RapidRecurrenceReport,
    ReasonPairStat,
    RecurrenceSummary,
)
from downtime_patterns.foundation.clock import minutes_between, round1

logger = logging.getLogger(__name__)


class RapidRecurrenceDetector:
    """Deterministic rapid-recurrence detection over a machine-state log.

    This detector is stateless: one instance may serve any number of
    concurrent requests.

    Args:
        top_limit: How many entries the top-reason and top-pair lists keep.
        preceding_reason_policy: Which downtime event of the preceding
            episode names it.  EPISODE_START reports the earliest event.
    """

    def __init__(
        self,
        top_limit: int = 15,
        preceding_reason_policy: PrecedingReasonPolicy = PrecedingReasonPolicy.EPISODE_START,
    ) -> None:
        self._top_limit = top_limit
        self._policy = preceding_reason_policy

    def with_policy(self, policy: PrecedingReasonPolicy) -> "RapidRecurrenceDetector":
        """A detector with the same limits that names episodes by *policy*."""
        if policy == self._policy:
            return self
        return RapidRecurrenceDetector(self._top_limit, policy)

    # ── Public API ───────────────────────────────────────────────────────

    def detect(
        self,
        events: Iterable[HistoricalEvent],
        threshold_minutes: float,
    ) -> list[RapidRecurrenceEvent]:
        """All rapid recurrences across all mills, most recent restart first.

        Raises:
            InvalidQueryError: If *threshold_minutes* is not positive.
        """
        check_threshold(threshold_minutes)

        found: list[RapidRecurrenceEvent] = []
        for mill, sequence in partition_by_mill(events).items():
            mill_found = self._scan_mill(mill, sequence, threshold_minutes)
            logger.debug("Mill %s: %d event(s), %d rapid recurrence(s)",
                         mill, len(sequence), len(mill_found))
            found.extend(mill_found)

        found.sort(key=lambda r: (r.mill, r.restart_event_id))
        found.sort(key=lambda r: r.restart_time, reverse=True)
        return found

    def build_report(
        self,
        events: Iterable[HistoricalEvent],
        threshold_minutes: float,
    ) -> RapidRecurrenceReport:
        """Detect rapid recurrences and derive every aggregate view of them."""
        found = self.detect(events, threshold_minutes)
        logger.info("Detected %d rapid recurrence(s) below %.1f min",
                    len(found), threshold_minutes)
        return RapidRecurrenceReport(
            events=found,
            summary=self.summarize(found),
            monthly_trend=self.monthly_trend(found),
            top_preceding_reasons=self.top_preceding_reasons(found),
            top_reason_pairs=self.top_reason_pairs(found),
        )

    # ── Aggregates ───────────────────────────────────────────────────────

    @staticmethod
    def summarize(found: list[RapidRecurrenceEvent]) -> RecurrenceSummary:
        if not found:
            return RecurrenceSummary()
        return RecurrenceSummary(
            total_rapid_recurrences=len(found),
            avg_run_duration=round1(mean([r.run_duration_minutes for r in found])),
            top_restart_cause=most_common(label_or_unknown(r.restart_reason) for r in found),
            top_subsequent_stop_cause=most_common(
                label_or_unknown(r.subsequent_stop_reason) for r in found
            ),
        )

    @staticmethod
    def monthly_trend(found: list[RapidRecurrenceEvent]) -> list[MonthlyTrendPoint]:
        return [
            MonthlyTrendPoint(month=label, count=count)
            for label, count in monthly_counts(r.restart_time for r in found)
        ]

    def top_preceding_reasons(self, found: list[RapidRecurrenceEvent]) -> list[PrecedingReasonStat]:
        ranked = ranked_counts(
            (label_or_unknown(r.preceding_downtime_reason) for r in found),
            limit=self._top_limit,
        )
        return [PrecedingReasonStat(reason=reason, occurrences=n) for reason, n in ranked]

    def top_reason_pairs(self, found: list[RapidRecurrenceEvent]) -> list[ReasonPairStat]:
        ranked = ranked_counts(
            (
                (label_or_unknown(r.preceding_downtime_reason),
                 label_or_unknown(r.subsequent_stop_reason))
                for r in found
            ),
            limit=self._top_limit,
        )
        return [
            ReasonPairStat(preceding_reason=before, subsequent_reason=after, occurrences=n)
            for (before, after), n in ranked
        ]

    # ── Scan ─────────────────────────────────────────────────────────────

    def _scan_mill(
        self,
        mill: str,
        events: list[HistoricalEvent],
        threshold_minutes: float,
    ) -> list[RapidRecurrenceEvent]:
        found: list[RapidRecurrenceEvent] = []

        for i in range(len(events) - 1):
            if not (events[i].is_downtime and events[i + 1].is_running):
                continue

            restart = events[i + 1]
            j = _first_stop_after(events, i + 1)
            if j is None:
                continue

            stop = events[j]
            run_minutes = minutes_between(restart.event_time, stop.event_time)
            if run_minutes >= threshold_minutes:
                continue

            episode_start = _episode_start(events, i)
            if self._policy == PrecedingReasonPolicy.EPISODE_START:
                reason_source = events[episode_start]
            else:
                reason_source = events[i]
            preceding_minutes = minutes_between(events[episode_start].event_time, restart.event_time)
            subsequent_minutes = _subsequent_downtime_minutes(events, j)

            found.append(RapidRecurrenceEvent(
                restart_time=restart.event_time,
                restart_reason=restart.reason,
                subsequent_stop_time=stop.event_time,
                subsequent_stop_reason=stop.reason,
                run_duration_minutes=round1(run_minutes),
                equipment=stop.equipment,
                product_spec=restart.product_spec or stop.product_spec,
                mill=mill,
                factory=restart.factory,
                restart_event_id=restart.id,
                stop_event_id=stop.id,
                preceding_downtime_reason=reason_source.reason,
                preceding_downtime_duration_minutes=round1(preceding_minutes),
                subsequent_downtime_duration_minutes=(
                    round1(subsequent_minutes) if subsequent_minutes is not None else None
                ),
            ))

        return found


# ── Helpers ──────────────────────────────────────────────────────────────────


def check_threshold(threshold_minutes: float) -> None:
    if not threshold_minutes > 0:
        raise InvalidQueryError(
            f"thresholdMinutes must be a positive number, got {threshold_minutes!r}"
        )


def _first_stop_after(events: list[HistoricalEvent], restart_index: int) -> Optional[int]:
    """Index of the first RUNNING → DOWNTIME edge after *restart_index*."""
    for j in range(restart_index + 1, len(events)):
        if events[j].is_downtime and events[j - 1].is_running:
            return j
    return None


def _episode_start(events: list[HistoricalEvent], last_downtime: int) -> int:
    """Walk back over consecutive DOWNTIME events; return the first index."""
    k = last_downtime
    while k > 0 and events[k - 1].is_downtime:
        k -= 1
    return k


def _subsequent_downtime_minutes(events: list[HistoricalEvent], stop_index: int) -> Optional[float]:
    stop = events[stop_index]
    for m in range(stop_index + 1, len(events)):
        if events[m].is_running:
            return minutes_between(stop.event_time, events[m].event_time)
    return stop.minutes
