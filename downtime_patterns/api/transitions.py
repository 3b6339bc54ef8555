"""REST endpoint for downtime-transition analysis.

Path: GET /api/downtime/transitions

Query params:
    mill, factory           optional filters
    startDate, endDate      optional ISO-8601 bounds (inclusive)
    grouping                reason | category | equipment
    topN                    matrix size per axis
    fromValue, toValue      restrict to one side (or one edge) of the graph
    scope                   pooled (all mills in one stream) | per_mill
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query

from downtime_patterns.api.params import parse_grouping, parse_scope
from downtime_patterns.domain.query import build_query
from downtime_patterns.services.analytics import DowntimeAnalyticsService


def create_transitions_router(
    service: DowntimeAnalyticsService,
    default_top_n: int = 12,
) -> APIRouter:
    """Factory that wires the transitions endpoint to a service."""

    router = APIRouter(prefix="/api/downtime", tags=["downtime"])

    @router.get("/transitions")
    async def downtime_transitions(
        mill: Optional[str] = None,
        factory: Optional[str] = None,
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        grouping: str = "reason",
        top_n: Optional[int] = Query(None, alias="topN"),
        from_value: Optional[str] = Query(None, alias="fromValue"),
        to_value: Optional[str] = Query(None, alias="toValue"),
        scope: str = "pooled",
    ) -> dict[str, Any]:
        query = build_query(mill=mill, factory=factory, start_date=start_date, end_date=end_date)
        report = await service.downtime_transitions(
            query,
            grouping=parse_grouping(grouping),
            top_n=default_top_n if top_n is None else top_n,
            from_value=from_value,
            to_value=to_value,
            scope=parse_scope(scope),
        )
        return report.model_dump(mode="json", by_alias=True)

    return router
