"""Downtime-transition domain models.

A transition is an ordered pair of categorical values (reason, category or
equipment) observed across one DOWNTIME → RUNNING → DOWNTIME triple.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from downtime_patterns.domain.event import HistoricalEvent


class DowntimeTransition(BaseModel):
    """A weighted directed edge of the transition graph."""

    from_value: str = Field(..., serialization_alias="from")
    to_value: str = Field(..., serialization_alias="to")
    count: int = Field(..., ge=1)
    percentage: float = Field(..., ge=0.0, le=100.0, description="Share of all transitions")

    model_config = {"frozen": True}


class TransitionEventPair(BaseModel):
    """The concrete events behind one transition occurrence."""

    preceding_event: HistoricalEvent = Field(..., serialization_alias="precedingEvent")
    subsequent_event: HistoricalEvent = Field(..., serialization_alias="subsequentEvent")
    running_period_minutes: Optional[float] = Field(
        None, serialization_alias="runningPeriodMinutes"
    )

    model_config = {"frozen": True}


class TransitionMatrix(BaseModel):
    """Dense count matrix: ``data[row][col]`` for the top-N rows and columns.

    Rows and columns are selected independently and need not be the same set.
    """

    rows: list[str] = Field(default_factory=list)
    cols: list[str] = Field(default_factory=list)
    data: list[list[int]] = Field(default_factory=list)

    model_config = {"frozen": True}


class DowntimeTransitionsReport(BaseModel):
    transitions: list[DowntimeTransition] = Field(default_factory=list)
    event_pairs: list[TransitionEventPair] = Field(
        default_factory=list, serialization_alias="eventPairs"
    )
    total_transitions: int = Field(0, serialization_alias="totalTransitions")
    matrix: TransitionMatrix = Field(default_factory=TransitionMatrix)
    truncated: bool = False
    event_limit: Optional[int] = Field(None, serialization_alias="eventLimit")

    model_config = {"frozen": True}
