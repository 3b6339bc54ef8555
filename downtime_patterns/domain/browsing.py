"""Response models for browsing the raw event log."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from downtime_patterns.domain.event import HistoricalEvent


class HistoricalEventsPage(BaseModel):
    """One page of events, newest first, with paging totals."""

    events: list[HistoricalEvent] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = Field(50, serialization_alias="pageSize")
    total_pages: int = Field(0, serialization_alias="totalPages")

    model_config = {"frozen": True}


class DateRange(BaseModel):
    start_date: datetime = Field(..., serialization_alias="startDate")
    end_date: datetime = Field(..., serialization_alias="endDate")

    model_config = {"frozen": True}
