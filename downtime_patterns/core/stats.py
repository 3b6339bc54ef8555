"""Counting helpers shared by the recurrence and transition reports.

All rankings are stable: values with equal counts keep the order in which
they were first encountered.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Hashable, Iterable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)

UNKNOWN_LABEL = "Unknown"

_MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def label_or_unknown(value: Optional[str]) -> str:
    return value or UNKNOWN_LABEL


def ranked_counts(values: Iterable[K], limit: int | None = None) -> list[tuple[K, int]]:
    """Count *values* and rank them by count descending.

    Counter preserves first-insertion order and ``sorted`` is stable, so
    ties stay in encounter order.
    """
    counts = Counter(values)
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return ranked if limit is None else ranked[:limit]


def most_common(values: Iterable[K]) -> Optional[K]:
    """Most frequent value, the first encountered one on ties; None if empty."""
    ranked = ranked_counts(values, limit=1)
    return ranked[0][0] if ranked else None


def rank_weighted(weights: Iterable[tuple[K, int]], limit: int | None = None) -> list[K]:
    """Sum weights per key and return keys ranked by total, descending."""
    totals: dict[K, int] = {}
    for key, weight in weights:
        totals[key] = totals.get(key, 0) + weight
    ranked = sorted(totals, key=lambda key: -totals[key])
    return ranked if limit is None else ranked[:limit]


def month_label(year: int, month: int) -> str:
    """``(2024, 3)`` → ``"Mar 2024"``, independent of locale."""
    return f"{_MONTH_ABBR[month - 1]} {year}"


def monthly_counts(timestamps: Iterable[datetime]) -> list[tuple[str, int]]:
    """Count timestamps per calendar month, oldest month first."""
    buckets = Counter((ts.year, ts.month) for ts in timestamps)
    return [(month_label(y, m), buckets[(y, m)]) for y, m in sorted(buckets)]


def mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)
