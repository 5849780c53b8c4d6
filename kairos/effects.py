"""Effects returned by the reducer.

An effect describes work to do; the runner does it and turns the outcome
back into an event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .confirm import BoundAction, Target
from .models import ExecutionStatus
from .query import SearchField


@dataclass(frozen=True)
class FetchExecutions:
    generation: int
    query: str
    page: int
    page_size: int
    page_token: str | None = None


@dataclass(frozen=True)
class SyncStatuses:
    workflow_ids: tuple[str, ...]


@dataclass(frozen=True)
class ResolveAttempts:
    targets: tuple[Target, ...]


@dataclass(frozen=True)
class CountExecutions:
    status: ExecutionStatus
    query: str
    rearm: bool = True


@dataclass(frozen=True)
class LoadFocus:
    request_id: int
    workflow_id: str
    run_id: str
    reload: bool = False


@dataclass(frozen=True)
class RunAction:
    action: BoundAction


@dataclass(frozen=True)
class FetchSuggestions:
    field: SearchField
    prefix: str


@dataclass(frozen=True)
class OpenUrl:
    workflow_id: str
    run_id: str


@dataclass(frozen=True)
class Notify:
    message: str
    severity: str = "information"


@dataclass(frozen=True)
class Schedule:
    delay: float
    event: Any


@dataclass(frozen=True)
class Exit:
    code: int = 0


# Effects that call the backend and so run off the UI thread
BACKEND_EFFECTS = (
    FetchExecutions,
    SyncStatuses,
    ResolveAttempts,
    CountExecutions,
    LoadFocus,
    RunAction,
    FetchSuggestions,
)
