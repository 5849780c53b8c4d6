"""Tests for history compaction."""

import copy

import pytest

from kairos.history import (
    ACTIVITY,
    BOOKKEEPING,
    CHILD_WORKFLOW,
    CONTINUATION,
    FAILURE,
    INPUT,
    LAST_ERROR,
    OPENING,
    OUTPUT,
    SINGLETON,
    TIMER,
    OrphanedEventError,
    compact_history,
    first_workflow_task_event_id,
    ordered_records,
    role_of,
)


def _payload(value):
    return {"payloads": [value]}


@pytest.fixture
def activity_history(make_event):
    """Start, one activity with a result, and completion."""
    return [
        make_event(1, "WorkflowExecutionStarted", input=_payload({"order": 7})),
        make_event(2, "WorkflowTaskScheduled"),
        make_event(3, "WorkflowTaskStarted"),
        make_event(4, "WorkflowTaskCompleted"),
        make_event(5, "ActivityTaskScheduled", activityId="5", activityType={"name": "Charge"},
                   input=_payload({"amount": 10})),
        make_event(6, "ActivityTaskStarted", scheduledEventId="5"),
        make_event(7, "ActivityTaskCompleted", scheduledEventId="5", result=_payload("ok")),
        make_event(8, "WorkflowTaskScheduled"),
        make_event(9, "WorkflowExecutionCompleted", result=_payload({"done": True})),
    ]


class TestRoleOf:
    """Tests for role_of()."""

    def test_opening(self):
        assert role_of("ActivityTaskScheduled") == OPENING

    def test_continuation(self):
        assert role_of("TimerFired") == CONTINUATION

    def test_bookkeeping(self):
        assert role_of("WorkflowTaskFailed") == BOOKKEEPING

    def test_anything_else_is_singleton(self):
        assert role_of("MarkerRecorded") == SINGLETON


class TestCompactHistory:
    """Tests for compact_history()."""

    def test_activity_scenario(self, activity_history):
        records = compact_history(activity_history)
        assert list(records) == [1, 5, 9]
        activity = records[5]
        assert activity.category == ACTIVITY
        assert activity.label == "Charge"
        assert activity.icon == "✅"
        assert activity.event_types == (
            "ActivityTaskScheduled",
            "ActivityTaskStarted",
            "ActivityTaskCompleted",
        )
        assert [b.kind for b in activity.content] == [INPUT, OUTPUT]
        assert '"amount": 10' in activity.content[0].text
        assert activity.content[1].text == "ok"

    def test_bookkeeping_never_appears(self, activity_history):
        records = compact_history(activity_history)
        for record in records.values():
            assert not any(t.startswith("WorkflowTask") for t in record.event_types)

    def test_workflow_records(self, activity_history):
        records = compact_history(activity_history)
        assert records[1].label == "Workflow started"
        assert records[1].icon == "🚀"
        assert records[1].content[0].kind == INPUT
        assert records[9].label == "Workflow completed"
        assert records[9].content[0].kind == OUTPUT

    def test_input_order_does_not_matter(self, activity_history):
        """Events are processed in ID order whatever order they arrive in."""
        shuffled = list(reversed(activity_history))
        assert compact_history(shuffled) == compact_history(activity_history)

    def test_compaction_is_pure(self, activity_history):
        before = copy.deepcopy(activity_history)
        first = compact_history(activity_history)
        second = compact_history(activity_history)
        assert first == second
        assert activity_history == before

    def test_empty_history(self):
        assert compact_history([]) == {}

    def test_pending_activity_is_joined(self, make_event, make_pending):
        events = [
            make_event(5, "ActivityTaskScheduled", activityId="5", activityType={"name": "Charge"}),
            make_event(6, "ActivityTaskStarted", scheduledEventId="5"),
        ]
        pending = [make_pending("5", 4, last_failure="card declined")]
        record = compact_history(events, pending)[5]
        assert record.attempts == 4
        assert record.label == "Charge 🔄4"
        assert record.content[0].kind == LAST_ERROR
        assert record.content[0].text == "card declined"
        assert record.icon == "🏃"

    def test_first_pending_entry_wins(self, make_event, make_pending):
        events = [make_event(5, "ActivityTaskScheduled", activityId="a", activityType={"name": "X"})]
        pending = [make_pending("a", 2), make_pending("a", 9)]
        assert compact_history(events, pending)[5].attempts == 2

    def test_pending_for_other_activity_is_ignored(self, make_event, make_pending):
        events = [make_event(5, "ActivityTaskScheduled", activityId="a", activityType={"name": "X"})]
        record = compact_history(events, [make_pending("b", 3)])[5]
        assert record.attempts is None
        assert record.label == "X"

    def test_activity_failure(self, make_event):
        events = [
            make_event(5, "ActivityTaskScheduled", activityId="5", activityType={"name": "Charge"}),
            make_event(6, "ActivityTaskStarted", scheduledEventId="5"),
            make_event(7, "ActivityTaskFailed", scheduledEventId="5",
                       failure={"message": "outer", "cause": {"message": "inner"}}),
        ]
        record = compact_history(events)[5]
        assert record.icon == "❌"
        assert record.content[-1].kind == FAILURE
        assert record.content[-1].text == "inner"

    def test_timer(self, make_event):
        events = [
            make_event(3, "TimerStarted", timerId="wait-5m"),
            make_event(4, "TimerFired", startedEventId="3"),
        ]
        record = compact_history(events)[3]
        assert record.category == TIMER
        assert record.label == "wait-5m"
        assert record.icon == "🔥"

    def test_child_workflow(self, make_event):
        events = [
            make_event(3, "StartChildWorkflowExecutionInitiated", workflowType={"name": "Ship"}),
            make_event(4, "ChildWorkflowExecutionStarted", initiatedEventId="3",
                       workflowExecution={"workflowId": "child-1", "runId": "r1"}),
        ]
        record = compact_history(events)[3]
        assert record.category == CHILD_WORKFLOW
        assert record.label == "Ship"
        assert record.icon == "🏃👶"
        assert record.child_execution() == ("child-1", "r1")

    def test_child_not_started_has_no_execution(self, make_event):
        events = [make_event(3, "StartChildWorkflowExecutionInitiated", workflowType={"name": "Ship"})]
        assert compact_history(events)[3].child_execution() is None

    def test_signal(self, make_event):
        events = [make_event(6, "WorkflowExecutionSignaled", signalName="approve",
                             input=_payload(True))]
        record = compact_history(events)[6]
        assert record.label == "approve"
        assert record.content[0].text == "true"

    def test_singleton(self, make_event):
        events = [make_event(6, "MarkerRecorded", markerName="Version")]
        record = compact_history(events)[6]
        assert record.category == "MarkerRecorded"
        assert record.label == "Version"
        assert record.icon == ""
        assert record.event_types == ("MarkerRecorded",)

    def test_orphaned_continuation_fails(self, make_event):
        events = [make_event(6, "ActivityTaskStarted", scheduledEventId="5")]
        with pytest.raises(OrphanedEventError) as exc_info:
            compact_history(events)
        assert exc_info.value.event_id == 6
        assert exc_info.value.key == 5

    def test_continuation_before_its_opener_fails(self, make_event):
        events = [
            make_event(5, "TimerFired", startedEventId="6"),
            make_event(6, "TimerStarted", timerId="t"),
        ]
        with pytest.raises(OrphanedEventError):
            compact_history(events)

    def test_continuation_without_reference_fails(self, make_event):
        with pytest.raises(OrphanedEventError):
            compact_history([make_event(6, "TimerFired")])

    def test_non_numeric_reference_fails(self, make_event):
        events = [
            make_event(5, "ActivityTaskScheduled", activityId="1", activityType={"name": "Charge"}),
            make_event(6, "ActivityTaskStarted", scheduledEventId="five"),
        ]
        with pytest.raises(OrphanedEventError) as exc_info:
            compact_history(events)
        assert exc_info.value.event_id == 6
        assert exc_info.value.key is None


class TestOrdering:
    def test_ordered_records_newest_first(self, activity_history):
        keys = [r.key for r in ordered_records(compact_history(activity_history))]
        assert keys == [9, 5, 1]


class TestFirstWorkflowTask:
    """Tests for first_workflow_task_event_id()."""

    def test_first_completed_task(self, activity_history):
        assert first_workflow_task_event_id(activity_history) == 4

    def test_falls_back_to_started_task(self, make_event):
        events = [
            make_event(1, "WorkflowExecutionStarted"),
            make_event(2, "WorkflowTaskScheduled"),
            make_event(3, "WorkflowTaskStarted"),
        ]
        assert first_workflow_task_event_id(events) == 3

    def test_none_without_workflow_tasks(self, make_event):
        assert first_workflow_task_event_id([make_event(1, "WorkflowExecutionStarted")]) is None
