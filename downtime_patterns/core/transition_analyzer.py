"""TransitionAnalyzer — which downtime cause tends to follow which.

Design principles:
    1. Pure function: accepts events, returns a DowntimeTransitionsReport.
    2. No side effects, no I/O, no mutation of the input events.
    3. Ordering is an explicit parameter (SequenceScope), not an accident
       of the call site.

Only DOWNTIME and RUNNING events take part; every other state is dropped
before the scan.  A window of three consecutive events slides over each
sequence, and every DOWNTIME → RUNNING → DOWNTIME window contributes one
transition ``(group(e1), group(e3))`` for the chosen grouping dimension.

Matrix construction:
    Row labels are the top-N ``from`` values ranked by outgoing totals,
    column labels the top-N ``to`` values ranked by incoming totals, chosen
    independently.  Each label is given an integer index once, and counts
    are written into a dense zero-filled array through those indices.
    Edges touching an unselected label are left out.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from downtime_patterns.core.sequencing import ordered_sequences
from downtime_patterns.core.stats import rank_weighted
from downtime_patterns.domain.enums import GroupingDimension, MachineState, SequenceScope
from downtime_patterns.domain.errors import InvalidQueryError
from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.domain.transitions import (
    DowntimeTransition,
    DowntimeTransitionsReport,
    TransitionEventPair,
    TransitionMatrix,
)
from downtime_patterns.foundation.clock import minutes_between

logger = logging.getLogger(__name__)

_SCANNED_STATES = frozenset({MachineState.DOWNTIME, MachineState.RUNNING})

TransitionKey = tuple[str, str]


class TransitionAnalyzer:
    """Builds the downtime transition graph and its top-N matrix.

    Stateless; every call works on its own copy of the ordering.
    """

    def analyze(
        self,
        events: Iterable[HistoricalEvent],
        grouping: GroupingDimension = GroupingDimension.REASON,
        top_n: int = 12,
        from_value: Optional[str] = None,
        to_value: Optional[str] = None,
        scope: SequenceScope = SequenceScope.POOLED,
    ) -> DowntimeTransitionsReport:
        """Scan *events* and return transitions, pairs, totals and matrix.

        ``from_value`` / ``to_value`` restrict the scan to matching windows
        before anything is counted, so every part of the report describes
        the same subset.

        Raises:
            InvalidQueryError: If *top_n* is less than 1.
        """
        if top_n < 1:
            raise InvalidQueryError(f"topN must be at least 1, got {top_n}")

        counts: dict[TransitionKey, int] = {}
        pairs: list[TransitionEventPair] = []

        relevant = [e for e in events if e.state in _SCANNED_STATES]
        for sequence in ordered_sequences(relevant, scope):
            for first, running, second in _windows(sequence):
                source = first.group_value(grouping)
                target = second.group_value(grouping)
                if from_value is not None and source != from_value:
                    continue
                if to_value is not None and target != to_value:
                    continue

                key = (source, target)
                counts[key] = counts.get(key, 0) + 1
                pairs.append(TransitionEventPair(
                    preceding_event=first,
                    subsequent_event=second,
                    running_period_minutes=_running_minutes(running, second),
                ))

        total = sum(counts.values())
        transitions = [
            DowntimeTransition(
                from_value=source,
                to_value=target,
                count=count,
                percentage=count / total * 100.0,
            )
            for (source, target), count in counts.items()
        ]
        transitions.sort(key=lambda t: -t.count)

        logger.info(
            "Found %d transition(s) over %d edge(s) grouped by %s",
            total, len(transitions), grouping.value,
        )

        return DowntimeTransitionsReport(
            transitions=transitions,
            event_pairs=pairs,
            total_transitions=total,
            matrix=build_matrix(transitions, top_n),
        )


# ── Matrix ───────────────────────────────────────────────────────────────────


def build_matrix(transitions: list[DowntimeTransition], top_n: int) -> TransitionMatrix:
    """Dense top-N × top-N count matrix from count-sorted transitions."""
    rows = rank_weighted(((t.from_value, t.count) for t in transitions), limit=top_n)
    cols = rank_weighted(((t.to_value, t.count) for t in transitions), limit=top_n)

    row_index = {label: i for i, label in enumerate(rows)}
    col_index = {label: j for j, label in enumerate(cols)}
    data = [[0] * len(cols) for _ in rows]

    for t in transitions:
        i = row_index.get(t.from_value)
        j = col_index.get(t.to_value)
        if i is not None and j is not None:
            data[i][j] = t.count

    return TransitionMatrix(rows=rows, cols=cols, data=data)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _windows(sequence: list[HistoricalEvent]):
    """Yield every DOWNTIME → RUNNING → DOWNTIME window of *sequence*."""
    for i in range(len(sequence) - 2):
        first, running, second = sequence[i], sequence[i + 1], sequence[i + 2]
        if first.is_downtime and running.is_running and second.is_downtime:
            yield first, running, second


def _running_minutes(running: HistoricalEvent, next_stop: HistoricalEvent) -> float:
    if running.minutes is not None:
        return running.minutes
    return minutes_between(running.event_time, next_stop.event_time)
