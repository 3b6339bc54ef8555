"""REST endpoint for rapid-recurrence analysis.

Path: GET /api/downtime/rapid-recurrence

Query params:
    mill, factory           optional filters
    startDate, endDate      optional ISO-8601 bounds (inclusive)
    thresholdMinutes        run time below which a restart counts as rapid
    precedingReason         episode_start (default) | adjacent
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query

from downtime_patterns.api.params import parse_policy
from downtime_patterns.domain.query import build_query
from downtime_patterns.services.analytics import DowntimeAnalyticsService


def create_recurrence_router(
    service: DowntimeAnalyticsService,
    default_threshold_minutes: float = 20.0,
) -> APIRouter:
    """Factory that wires the rapid-recurrence endpoint to a service."""

    router = APIRouter(prefix="/api/downtime", tags=["downtime"])

    @router.get("/rapid-recurrence")
    async def rapid_recurrence(
        mill: Optional[str] = None,
        factory: Optional[str] = None,
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        threshold_minutes: Optional[float] = Query(None, alias="thresholdMinutes"),
        preceding_reason: Optional[str] = Query(None, alias="precedingReason"),
    ) -> dict[str, Any]:
        query = build_query(mill=mill, factory=factory, start_date=start_date, end_date=end_date)
        threshold = default_threshold_minutes if threshold_minutes is None else threshold_minutes
        report = await service.rapid_recurrence(
            query, threshold_minutes=threshold, policy=parse_policy(preceding_reason),
        )
        return report.model_dump(mode="json", by_alias=True)

    return router
