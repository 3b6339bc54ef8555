"""Event ordering for sequence scans.

Both scanners depend on chronological order and are meaningless without it,
so ordering is done here, explicitly, rather than trusted to the store.
Events with equal timestamps are ordered by mill then id so that the scan
result does not depend on the order the store returned rows in.
"""

from __future__ import annotations

from typing import Iterable

from downtime_patterns.domain.enums import SequenceScope
from downtime_patterns.domain.event import HistoricalEvent


def _chronological_key(event: HistoricalEvent) -> tuple:
    return (event.event_time, event.mill, event.id)


def sort_chronologically(events: Iterable[HistoricalEvent]) -> list[HistoricalEvent]:
    """Return a new list sorted ascending by event_time."""
    return sorted(events, key=_chronological_key)


def partition_by_mill(events: Iterable[HistoricalEvent]) -> dict[str, list[HistoricalEvent]]:
    """Group events by mill; each group is sorted chronologically.

    Mills are returned in name order.
    """
    groups: dict[str, list[HistoricalEvent]] = {}
    for event in events:
        groups.setdefault(event.mill, []).append(event)
    return {mill: sort_chronologically(groups[mill]) for mill in sorted(groups)}


def ordered_sequences(
    events: Iterable[HistoricalEvent],
    scope: SequenceScope,
) -> list[list[HistoricalEvent]]:
    """Split *events* into the independent sequences a scanner should walk."""
    if scope == SequenceScope.PER_MILL:
        return list(partition_by_mill(events).values())
    pooled = sort_chronologically(events)
    return [pooled] if pooled else []
