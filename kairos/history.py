"""History compaction: raw execution history to correlated display records.

A workflow's history is a long, flat list of events, most of which only make
sense next to the event that started them (an activity is scheduled, then
started, then completed). ``compact_history`` folds that list into one
record per logical step, keyed by the ID of the event that opened it.

Each event type plays exactly one role:

    opening       starts a new record keyed by its own event ID
    continuation  joins the record named by a back-reference attribute
    singleton     any other event; a record with itself as the only member

Workflow-task bookkeeping events (``WorkflowTask*``) are dropped.

The build runs in two passes over the events in ID order. The first inserts
every opening record; the second applies continuations and singletons. A
continuation whose key has no opener with a smaller ID is a malformed history
and raises ``OrphanedEventError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .codec import failure_message, render_payloads
from .models import HistoryEvent, PendingActivityInfo

OPENING = "opening"
CONTINUATION = "continuation"
SINGLETON = "singleton"
BOOKKEEPING = "bookkeeping"

BOOKKEEPING_PREFIX = "WorkflowTask"

ACTIVITY = "Activity"
TIMER = "Timer"
CHILD_WORKFLOW = "Child Workflow"

OPENING_TYPES: frozenset[str] = frozenset({
    "WorkflowExecutionStarted",
    "WorkflowExecutionCompleted",
    "WorkflowExecutionSignaled",
    "ActivityTaskScheduled",
    "TimerStarted",
    "StartChildWorkflowExecutionInitiated",
})

# Continuation event type -> attribute holding the opener's event ID
CONTINUATION_REFS: dict[str, str] = {
    "ActivityTaskStarted": "scheduledEventId",
    "ActivityTaskCompleted": "scheduledEventId",
    "ActivityTaskFailed": "scheduledEventId",
    "ActivityTaskTimedOut": "scheduledEventId",
    "ActivityTaskCancelRequested": "scheduledEventId",
    "ActivityTaskCanceled": "scheduledEventId",
    "TimerFired": "startedEventId",
    "TimerCanceled": "startedEventId",
    "ChildWorkflowExecutionStarted": "initiatedEventId",
    "ChildWorkflowExecutionCompleted": "initiatedEventId",
    "ChildWorkflowExecutionFailed": "initiatedEventId",
    "ChildWorkflowExecutionCanceled": "initiatedEventId",
    "ChildWorkflowExecutionTimedOut": "initiatedEventId",
    "ChildWorkflowExecutionTerminated": "initiatedEventId",
    "StartChildWorkflowExecutionFailed": "initiatedEventId",
}

ICONS: dict[str, str] = {
    "WorkflowExecutionStarted": "🚀",
    "WorkflowExecutionCompleted": "✅",
    "WorkflowExecutionSignaled": "🛜",
    "ActivityTaskScheduled": "📅",
    "ActivityTaskStarted": "🏃",
    "ActivityTaskCompleted": "✅",
    "ActivityTaskFailed": "❌",
    "ActivityTaskTimedOut": "⏰",
    "ActivityTaskCancelRequested": "🚫",
    "ActivityTaskCanceled": "🚫",
    "TimerStarted": "⏰",
    "TimerFired": "🔥",
    "TimerCanceled": "🚫",
    "StartChildWorkflowExecutionInitiated": "👶🏃",
    "ChildWorkflowExecutionStarted": "🏃👶",
    "ChildWorkflowExecutionCompleted": "✅👶",
    "ChildWorkflowExecutionFailed": "❌👶",
    "ChildWorkflowExecutionCanceled": "🚫👶",
    "ChildWorkflowExecutionTimedOut": "⏰👶",
    "ChildWorkflowExecutionTerminated": "💀👶",
    "StartChildWorkflowExecutionFailed": "❌👶",
}

# Content block kinds
INPUT = "Input"
OUTPUT = "Output"
LAST_ERROR = "Last Error"
FAILURE = "Failure"


class OrphanedEventError(ValueError):
    """A continuation event arrived with no opening event before it."""

    def __init__(self, event_id: int, key: int | None) -> None:
        super().__init__(
            f"History event {event_id} refers to event {key}, "
            f"which does not open a step before it"
        )
        self.event_id = event_id
        self.key = key


@dataclass(frozen=True)
class ContentBlock:
    kind: str
    text: str


@dataclass(frozen=True)
class CompactedRecord:
    """One logical step of an execution, built from 1..N raw events."""

    key: int
    category: str
    icon: str
    label: str
    content: tuple[ContentBlock, ...] = ()
    events: tuple[HistoryEvent, ...] = ()
    attempts: int | None = None

    @property
    def event_types(self) -> tuple[str, ...]:
        return tuple(e.event_type for e in self.events)

    def child_execution(self) -> tuple[str, str] | None:
        """Return (workflow_id, run_id) of a started child, else None."""
        if self.category != CHILD_WORKFLOW:
            return None
        for event in self.events:
            if event.event_type == "ChildWorkflowExecutionStarted":
                execution = event.attributes.get("workflowExecution") or {}
                workflow_id = execution.get("workflowId")
                if workflow_id:
                    return workflow_id, execution.get("runId", "")
        return None


@dataclass
class _Draft:
    """Mutable record under construction within a single compaction pass."""

    key: int
    category: str
    icon: str
    label: str = ""
    content: list[ContentBlock] = field(default_factory=list)
    events: list[HistoryEvent] = field(default_factory=list)
    attempts: int | None = None

    def add_block(self, kind: str, text: str | None) -> None:
        if text:
            self.content.append(ContentBlock(kind, text))

    def freeze(self) -> CompactedRecord:
        return CompactedRecord(
            key=self.key,
            category=self.category,
            icon=self.icon,
            label=self.label,
            content=tuple(self.content),
            events=tuple(self.events),
            attempts=self.attempts,
        )


def role_of(event_type: str) -> str:
    """Classify an event type into its compaction role."""
    if event_type in OPENING_TYPES:
        return OPENING
    if event_type in CONTINUATION_REFS:
        return CONTINUATION
    if event_type.startswith(BOOKKEEPING_PREFIX):
        return BOOKKEEPING
    return SINGLETON


def _name(attributes: Mapping, field_name: str) -> str:
    return (attributes.get(field_name) or {}).get("name", "")


def _open(event: HistoryEvent, pending: Mapping[str, PendingActivityInfo]) -> _Draft:
    attrs = event.attributes
    kind = event.event_type
    draft = _Draft(key=event.event_id, category=kind, icon=ICONS[kind], events=[event])

    if kind == "ActivityTaskScheduled":
        draft.category = ACTIVITY
        draft.label = _name(attrs, "activityType")
        info = pending.get(attrs.get("activityId", ""))
        if info is not None:
            draft.add_block(LAST_ERROR, info.last_failure)
            draft.label += f" 🔄{info.attempt}"
            draft.attempts = info.attempt
        draft.add_block(INPUT, render_payloads(attrs.get("input")))
    elif kind == "TimerStarted":
        draft.category = TIMER
        draft.label = attrs.get("timerId", "")
    elif kind == "StartChildWorkflowExecutionInitiated":
        draft.category = CHILD_WORKFLOW
        draft.label = _name(attrs, "workflowType")
        draft.add_block(INPUT, render_payloads(attrs.get("input")))
    elif kind == "WorkflowExecutionStarted":
        draft.label = "Workflow started"
        draft.add_block(INPUT, render_payloads(attrs.get("input")))
    elif kind == "WorkflowExecutionCompleted":
        draft.label = "Workflow completed"
        draft.add_block(OUTPUT, render_payloads(attrs.get("result")))
    elif kind == "WorkflowExecutionSignaled":
        draft.label = attrs.get("signalName", "")
        draft.add_block(INPUT, render_payloads(attrs.get("input")))
    return draft


def _continue(draft: _Draft, event: HistoryEvent) -> None:
    attrs = event.attributes
    draft.icon = ICONS[event.event_type]
    draft.events.append(event)
    if "result" in attrs:
        draft.add_block(OUTPUT, render_payloads(attrs.get("result")))
    if "failure" in attrs:
        draft.add_block(FAILURE, failure_message(attrs.get("failure")))
    elif event.event_type == "StartChildWorkflowExecutionFailed":
        draft.add_block(FAILURE, attrs.get("cause"))


def _singleton(event: HistoryEvent) -> _Draft:
    attrs = event.attributes
    draft = _Draft(key=event.event_id, category=event.event_type, icon="", events=[event])
    draft.label = attrs.get("reason") or attrs.get("markerName") or ""
    draft.add_block(FAILURE, failure_message(attrs.get("failure")))
    return draft


def compact_history(
    events: Iterable[HistoryEvent],
    pending_activities: Iterable[PendingActivityInfo] = (),
) -> dict[int, CompactedRecord]:
    """Fold a history into records keyed by correlation key.

    Args:
        events: History events of one execution, ascending by ID.
        pending_activities: Current pending-activity snapshot for the same
            execution. Joined into activity records by activity ID.

    Returns:
        Mapping of correlation key to CompactedRecord, in ascending key order.

    Raises:
        OrphanedEventError: A continuation event has no earlier opener.
    """
    ordered = sorted(events, key=lambda e: e.event_id)
    pending: dict[str, PendingActivityInfo] = {}
    for info in pending_activities:
        pending.setdefault(info.activity_id, info)

    drafts: dict[int, _Draft] = {}
    for event in ordered:
        if role_of(event.event_type) == OPENING:
            drafts[event.event_id] = _open(event, pending)

    for event in ordered:
        role = role_of(event.event_type)
        if role == CONTINUATION:
            key = event.ref(CONTINUATION_REFS[event.event_type])
            draft = drafts.get(key) if key is not None else None
            if draft is None or key >= event.event_id:
                raise OrphanedEventError(event.event_id, key)
            _continue(draft, event)
        elif role == SINGLETON:
            drafts[event.event_id] = _singleton(event)

    return {key: drafts[key].freeze() for key in sorted(drafts)}


def ordered_records(records: Mapping[int, CompactedRecord]) -> list[CompactedRecord]:
    """Records in display order: most recently opened first."""
    return [records[key] for key in sorted(records, reverse=True)]


def first_workflow_task_event_id(events: Iterable[HistoryEvent]) -> int | None:
    """Find the event a restart resets to.

    That is the first completed workflow task, or the event after the first
    scheduled one when no workflow task has completed yet.
    """
    fallback = None
    for event in sorted(events, key=lambda e: e.event_id):
        if event.event_type == "WorkflowTaskCompleted":
            return event.event_id
        if event.event_type == "WorkflowTaskScheduled" and fallback is None:
            fallback = event.event_id + 1
    return fallback
