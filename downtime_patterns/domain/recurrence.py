"""Rapid-recurrence domain models.

A rapid recurrence is a restart (DOWNTIME → RUNNING) followed by a new stop
(RUNNING → DOWNTIME) before the line has run for the threshold number of
minutes.  These models are pure observations; the detector that produces
them lives in ``downtime_patterns.core.recurrence_detector``.

Field names of the per-event record are snake_case on the wire; report-level
keys are camelCase, matching what the dashboard consumes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RapidRecurrenceEvent(BaseModel):
    """One restart that failed again within the threshold."""

    restart_time: datetime
    restart_reason: Optional[str] = None
    subsequent_stop_time: datetime
    subsequent_stop_reason: Optional[str] = None
    run_duration_minutes: float = Field(..., description="Restart → stop, rounded to 1 dp")
    equipment: Optional[str] = None
    product_spec: Optional[str] = None
    mill: str
    factory: Optional[str] = None
    restart_event_id: str
    stop_event_id: str

    # Drill-down context
    preceding_downtime_reason: Optional[str] = None
    preceding_downtime_duration_minutes: Optional[float] = None
    subsequent_downtime_duration_minutes: Optional[float] = None

    model_config = {"frozen": True}


class RecurrenceSummary(BaseModel):
    total_rapid_recurrences: int = Field(0, serialization_alias="totalRapidRecurrences")
    avg_run_duration: float = Field(0.0, serialization_alias="avgRunDuration")
    top_restart_cause: Optional[str] = Field(None, serialization_alias="topRestartCause")
    top_subsequent_stop_cause: Optional[str] = Field(
        None, serialization_alias="topSubsequentStopCause"
    )

    model_config = {"frozen": True}


class MonthlyTrendPoint(BaseModel):
    month: str = Field(..., description='Label formatted as "Mon YYYY"')
    count: int

    model_config = {"frozen": True}


class PrecedingReasonStat(BaseModel):
    reason: str
    occurrences: int

    model_config = {"frozen": True}


class ReasonPairStat(BaseModel):
    preceding_reason: str
    subsequent_reason: str
    occurrences: int

    model_config = {"frozen": True}


class RapidRecurrenceReport(BaseModel):
    """Everything the rapid-recurrence view needs, in one payload.

    ``truncated`` is set when the event store held more events than the
    retrieval ceiling allowed; counts are then a lower bound.
    """

    events: list[RapidRecurrenceEvent] = Field(default_factory=list)
    summary: RecurrenceSummary = Field(default_factory=RecurrenceSummary)
    monthly_trend: list[MonthlyTrendPoint] = Field(
        default_factory=list, serialization_alias="monthlyTrend"
    )
    top_preceding_reasons: list[PrecedingReasonStat] = Field(
        default_factory=list, serialization_alias="topPrecedingReasons"
    )
    top_reason_pairs: list[ReasonPairStat] = Field(
        default_factory=list, serialization_alias="topReasonPairs"
    )
    truncated: bool = False
    event_limit: Optional[int] = Field(None, serialization_alias="eventLimit")

    model_config = {"frozen": True}
