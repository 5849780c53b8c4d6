"""Events applied by the reducer.

User input, fetch results and timer ticks are all events; the reducer
applies them one at a time. Result events carry whatever the reducer needs
to tell whether they are still relevant when they arrive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from .models import ExecutionSnapshot, ExecutionStatus, HistoryEvent, PendingActivityInfo
from .query import SearchField


# ---------------------------------------------------------------------------
# Lifecycle and user input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class StartSearch:
    field: SearchField


@dataclass(frozen=True)
class SearchTextChanged:
    text: str


@dataclass(frozen=True)
class AcceptSuggestion:
    pass


@dataclass(frozen=True)
class SubmitSearch:
    pass


@dataclass(frozen=True)
class CancelSearch:
    pass


@dataclass(frozen=True)
class ClearFilters:
    pass


@dataclass(frozen=True)
class ToggleParentsOnly:
    pass


@dataclass(frozen=True)
class NextPage:
    pass


@dataclass(frozen=True)
class PrevPage:
    pass


@dataclass(frozen=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True)
class ToggleSelection:
    pass


@dataclass(frozen=True)
class FocusSelected:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class DrillIntoChild:
    pass


@dataclass(frozen=True)
class OpenInBrowser:
    pass


@dataclass(frozen=True)
class RequestAction:
    kind: str


@dataclass(frozen=True)
class Confirm:
    confirmed: bool


@dataclass(frozen=True)
class ToggleHelp:
    pass


@dataclass(frozen=True)
class Quit:
    pass


# ---------------------------------------------------------------------------
# Fetch results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExecutionsLoaded:
    generation: int
    page: int
    executions: tuple[ExecutionSnapshot, ...]
    next_token: str | None = None


@dataclass(frozen=True)
class ExecutionsFailed:
    generation: int
    error: str


@dataclass(frozen=True)
class StatusesSynced:
    executions: tuple[ExecutionSnapshot, ...]


@dataclass(frozen=True)
class StatusSyncFailed:
    error: str


@dataclass(frozen=True)
class AttemptsResolved:
    # Keyed by (workflow_id, run_id)
    attempts: Mapping[tuple[str, str], int] = field(default_factory=dict)


@dataclass(frozen=True)
class AttemptsFailed:
    error: str


@dataclass(frozen=True)
class CountLoaded:
    status: ExecutionStatus
    query: str
    count: int
    rearm: bool = True


@dataclass(frozen=True)
class CountFailed:
    status: ExecutionStatus
    error: str
    rearm: bool = True


@dataclass(frozen=True)
class FocusLoaded:
    request_id: int
    workflow_id: str
    run_id: str
    execution: ExecutionSnapshot
    events: tuple[HistoryEvent, ...]
    pending: tuple[PendingActivityInfo, ...] = ()
    reload: bool = False


@dataclass(frozen=True)
class FocusFailed:
    request_id: int
    error: str


@dataclass(frozen=True)
class ActionFinished:
    error: str | None = None


@dataclass(frozen=True)
class SuggestionsLoaded:
    field: SearchField
    prefix: str
    options: tuple[str, ...]


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusSyncTick:
    pass


@dataclass(frozen=True)
class AttemptSyncTick:
    pass


@dataclass(frozen=True)
class CountTick:
    status: ExecutionStatus


@dataclass(frozen=True)
class ConfirmationExpired:
    pass
