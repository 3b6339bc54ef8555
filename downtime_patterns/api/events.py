"""REST endpoints for browsing the raw event log.

Paths:
    GET /api/events                          paginated, newest first
    GET /api/mills                           mills that have events
    GET /api/mills/{mill}/default-range      suggested date window
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query

from downtime_patterns.domain.query import build_query
from downtime_patterns.services.analytics import DowntimeAnalyticsService


def create_events_router(
    service: DowntimeAnalyticsService,
    default_page_size: int = 50,
) -> APIRouter:
    """Factory that wires the event browsing endpoints to a service."""

    router = APIRouter(prefix="/api", tags=["events"])

    @router.get("/events")
    async def historical_events(
        mill: Optional[str] = None,
        factory: Optional[str] = None,
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        state: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = Query(None, alias="pageSize"),
    ) -> dict[str, Any]:
        query = build_query(
            mill=mill, factory=factory, start_date=start_date, end_date=end_date, state=state,
        )
        result = await service.historical_events(
            query,
            page=page,
            page_size=default_page_size if page_size is None else page_size,
        )
        return result.model_dump(mode="json", by_alias=True)

    @router.get("/mills")
    async def available_mills() -> dict[str, Any]:
        return {"mills": await service.available_mills()}

    @router.get("/mills/{mill}/default-range")
    async def default_range(mill: str) -> dict[str, Any]:
        date_range = await service.default_date_range(mill)
        return date_range.model_dump(mode="json", by_alias=True)

    return router
