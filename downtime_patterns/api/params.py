"""Conversion of enum-valued query parameters.

Unknown values are rejected with InvalidQueryError so they reach the
client as 400 ``{"error": ...}`` rather than FastAPI's 422 body.
"""

from __future__ import annotations

from typing import Optional

from downtime_patterns.domain.enums import GroupingDimension, PrecedingReasonPolicy, SequenceScope
from downtime_patterns.domain.errors import InvalidQueryError


def parse_grouping(value: str) -> GroupingDimension:
    try:
        return GroupingDimension(value.strip().lower())
    except ValueError:
        allowed = ", ".join(g.value for g in GroupingDimension)
        raise InvalidQueryError(f"grouping must be one of: {allowed}; got {value!r}") from None


def parse_scope(value: str) -> SequenceScope:
    try:
        return SequenceScope(value.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in SequenceScope)
        raise InvalidQueryError(f"scope must be one of: {allowed}; got {value!r}") from None


def parse_policy(value: Optional[str]) -> Optional[PrecedingReasonPolicy]:
    if value is None or not value.strip():
        return None
    try:
        return PrecedingReasonPolicy(value.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in PrecedingReasonPolicy)
        raise InvalidQueryError(
            f"precedingReason must be one of: {allowed}; got {value!r}"
        ) from None
