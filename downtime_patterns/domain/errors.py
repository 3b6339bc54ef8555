"""Exception types shared across the store, service and API layers."""

from __future__ import annotations


class InvalidQueryError(ValueError):
    """Raised when analysis parameters are rejected before any scan runs."""


class EventSourceError(Exception):
    """Raised when the event store cannot be reached or returns an error."""

    def __init__(self, source_name: str, reason: str) -> None:
        self.source_name = source_name
        self.reason = reason
        super().__init__(f"Event source '{source_name}' failed: {reason}")
