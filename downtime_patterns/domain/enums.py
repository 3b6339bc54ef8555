"""Controlled enumerations for the downtime-patterns domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class MachineState(str, Enum):
    """Operating states a mill may report in its event log."""

    RUNNING = "RUNNING"
    DOWNTIME = "DOWNTIME"
    UNSCHEDULED = "UNSCHEDULED"
    CHANGEOVER = "CHANGEOVER"
    UNKNOWN = "UNKNOWN"


class GroupingDimension(str, Enum):
    """Categorical attribute used to label nodes of the transition matrix."""

    REASON = "reason"
    CATEGORY = "category"
    EQUIPMENT = "equipment"

    @property
    def placeholder(self) -> str:
        """Node label used when an event carries no value for this dimension."""
        return f"(No {self.value.capitalize()})"


class SequenceScope(str, Enum):
    """How an event log is ordered before pattern scanning.

    PER_MILL:  each mill is sorted and scanned on its own.
    POOLED:    all mills are merged into one time-sorted stream, so a pattern
               may span events from different mills.
    """

    PER_MILL = "per_mill"
    POOLED = "pooled"


class PrecedingReasonPolicy(str, Enum):
    """Which event of a downtime episode supplies the preceding reason.

    EPISODE_START:  the earliest DOWNTIME event of the episode.
    ADJACENT:       the DOWNTIME event immediately before the restart.
    """

    EPISODE_START = "episode_start"
    ADJACENT = "adjacent"
