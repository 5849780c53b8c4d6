"""Domain types shared by the dashboard core.

These are the read-only shapes the backend adapter produces from API
responses. Nothing in here talks to the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class ExecutionStatus(str, Enum):
    UNSPECIFIED = "Unspecified"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELED = "Canceled"
    TERMINATED = "Terminated"
    CONTINUED_AS_NEW = "ContinuedAsNew"
    TIMED_OUT = "TimedOut"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


# Statuses shown in the header counters, in display order
HEADLINE_STATUSES: tuple[ExecutionStatus, ...] = (
    ExecutionStatus.RUNNING,
    ExecutionStatus.COMPLETED,
    ExecutionStatus.FAILED,
    ExecutionStatus.CANCELED,
    ExecutionStatus.TERMINATED,
)


@dataclass(frozen=True)
class ExecutionSnapshot:
    """Point-in-time view of one workflow execution."""

    workflow_id: str
    run_id: str
    workflow_type: str = ""
    status: ExecutionStatus = ExecutionStatus.UNSPECIFIED
    start_time: datetime | None = None
    close_time: datetime | None = None
    parent_workflow_id: str | None = None
    history_length: int = 0

    @property
    def is_running(self) -> bool:
        return not self.status.is_terminal

    @property
    def is_child(self) -> bool:
        return bool(self.parent_workflow_id)

    @property
    def identity(self) -> tuple[str, str]:
        """(workflow_id, run_id). A reset or retry reuses the workflow ID."""
        return self.workflow_id, self.run_id


@dataclass(frozen=True)
class HistoryEvent:
    """A single raw history event.

    ``event_type`` is the canonical CamelCase name (``ActivityTaskScheduled``)
    and ``attributes`` holds the type-specific attribute object exactly as the
    API returned it.
    """

    event_id: int
    event_type: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    event_time: datetime | None = None

    def ref(self, name: str) -> int | None:
        """Return an int64 back-reference attribute.

        None if the attribute is absent or is not an integer, so a malformed
        reference reads the same as a missing one.
        """
        value = self.attributes.get(name)
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class PendingActivityInfo:
    """An activity still being retried by the server."""

    activity_id: str
    activity_type: str = ""
    attempt: int = 0
    last_failure: str | None = None
