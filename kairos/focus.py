"""Drill-down navigation into single executions.

Focusing an execution pushes a frame holding its compacted history. Drilling
into a started child workflow pushes another frame on top. Going back pops
the top frame; an empty stack means the execution list is showing.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from .history import CompactedRecord, compact_history, ordered_records
from .models import ExecutionSnapshot, HistoryEvent, PendingActivityInfo


class EmptyFocusStack(IndexError):
    """Pop on a focus stack with no frames."""


@dataclass(frozen=True)
class FocusFrame:
    workflow_id: str
    run_id: str
    execution: ExecutionSnapshot
    records: Mapping[int, CompactedRecord] = field(default_factory=dict)
    cursor: int = 0

    @property
    def ordered(self) -> list[CompactedRecord]:
        return ordered_records(self.records)

    @property
    def current(self) -> CompactedRecord | None:
        ordered = self.ordered
        if 0 <= self.cursor < len(ordered):
            return ordered[self.cursor]
        return None

    def moved(self, delta: int) -> "FocusFrame":
        last = max(len(self.records) - 1, 0)
        return replace(self, cursor=max(0, min(last, self.cursor + delta)))


FocusStack = tuple[FocusFrame, ...]


def build_frame(
    workflow_id: str,
    run_id: str,
    execution: ExecutionSnapshot,
    events: Iterable[HistoryEvent],
    pending: Iterable[PendingActivityInfo],
) -> FocusFrame:
    """Compact an execution's history into a fresh frame (cursor 0).

    Raises:
        OrphanedEventError: The history is malformed.
    """
    records = compact_history(events, pending)
    return FocusFrame(
        workflow_id=workflow_id,
        run_id=run_id,
        execution=execution,
        records=records,
    )


def push(stack: FocusStack, frame: FocusFrame) -> FocusStack:
    return stack + (frame,)


def pop(stack: FocusStack) -> FocusStack:
    if not stack:
        raise EmptyFocusStack("No focused execution to leave")
    return stack[:-1]


def top(stack: FocusStack) -> FocusFrame | None:
    return stack[-1] if stack else None


def replace_top(stack: FocusStack, frame: FocusFrame) -> FocusStack:
    return stack[:-1] + (frame,)


def child_target(frame: FocusFrame) -> tuple[str, str] | None:
    """Child execution under the cursor, if it has started."""
    record = frame.current
    if record is None:
        return None
    return record.child_execution()
