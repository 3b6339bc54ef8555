"""EventQuery — the filter every event-store request is made with."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from downtime_patterns.domain.enums import MachineState
from downtime_patterns.domain.errors import InvalidQueryError
from downtime_patterns.domain.event import HistoricalEvent
from downtime_patterns.foundation.clock import ensure_utc


class EventQuery(BaseModel):
    """Mill / factory / date-range filter.  All bounds are inclusive."""

    mill: Optional[str] = None
    factory: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    state: Optional[MachineState] = None

    model_config = {"frozen": True}

    @field_validator("mill", "factory", mode="before")
    @classmethod
    def blank_means_unset(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_must_be_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else v

    @field_validator("state", mode="before")
    @classmethod
    def state_case_insensitive(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper() or None
        return v

    @model_validator(mode="after")
    def range_must_be_ordered(self) -> "EventQuery":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    def matches(self, event: HistoricalEvent) -> bool:
        """True if *event* satisfies every filter set on this query."""
        if self.mill is not None and event.mill != self.mill:
            return False
        if self.factory is not None and event.factory != self.factory:
            return False
        if self.start_date is not None and event.event_time < self.start_date:
            return False
        if self.end_date is not None and event.event_time > self.end_date:
            return False
        if self.state is not None and event.state != self.state:
            return False
        return True


def build_query(**fields: object) -> EventQuery:
    """Validate raw request fields into an EventQuery.

    Raises:
        InvalidQueryError: If a date is unparseable, the range is inverted,
            or the state is not a known machine state.
    """
    try:
        return EventQuery.model_validate(fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidQueryError(problems) from exc
