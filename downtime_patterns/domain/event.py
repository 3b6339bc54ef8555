"""HistoricalEvent — one observation of a mill's operating state.

This is the contract between the event store and the analyzers.  Rows come
from the store as loosely typed dicts; they are validated here, at the
boundary, so the scanners never have to re-check field constraints.
Columns the analyzers do not use (created_at, fy_week, ...) are ignored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from downtime_patterns.domain.enums import GroupingDimension, MachineState
from downtime_patterns.foundation.clock import ensure_utc


class HistoricalEvent(BaseModel):
    """A single machine-state event from a mill's historical log.

    Immutable after creation.  ``minutes`` is the duration the store
    recorded for the event, if any; analyzers derive durations from
    timestamps when it is absent.
    """

    id: str = Field(..., min_length=1, description="Opaque unique identifier")
    mill: str = Field(..., min_length=1, description="Production line the event belongs to")
    factory: Optional[str] = Field(default=None, description="Owning plant")
    event_time: datetime = Field(..., description="When the state was observed (UTC)")
    state: MachineState
    minutes: Optional[float] = Field(default=None, ge=0.0)

    reason: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    equipment: Optional[str] = None
    product_spec: Optional[str] = None
    comment: Optional[str] = None
    shift: Optional[str] = None
    size: Optional[str] = None

    model_config = {"frozen": True, "extra": "ignore"}

    # ── Validators ───────────────────────────────────────────────────────

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: object) -> object:
        # Stores hand out integer or UUID keys
        if v is not None and not isinstance(v, str):
            return str(v)
        return v

    @field_validator("event_time")
    @classmethod
    def event_time_must_be_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("state", mode="before")
    @classmethod
    def state_case_insensitive(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def is_downtime(self) -> bool:
        return self.state == MachineState.DOWNTIME

    @property
    def is_running(self) -> bool:
        return self.state == MachineState.RUNNING

    def group_value(self, dimension: GroupingDimension) -> str:
        """Value of *dimension* on this event, or the dimension's placeholder."""
        value = getattr(self, dimension.value)
        return value or dimension.placeholder
