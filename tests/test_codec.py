"""Tests for HTTP API JSON parsing."""

import base64
import json
from datetime import datetime, timezone

from kairos.codec import (
    event_type_name,
    execution_status,
    failure_message,
    parse_event,
    parse_execution,
    parse_pending_activity,
    parse_timestamp,
    render_payloads,
)
from kairos.models import ExecutionStatus


def _encoded(value):
    data = base64.b64encode(json.dumps(value).encode()).decode()
    return {"metadata": {"encoding": "anNvbi9wbGFpbg=="}, "data": data}


class TestEnums:
    def test_full_event_type(self):
        assert event_type_name("EVENT_TYPE_ACTIVITY_TASK_SCHEDULED") == "ActivityTaskScheduled"

    def test_shorthand_event_type(self):
        assert event_type_name("TimerFired") == "TimerFired"

    def test_missing_event_type(self):
        assert event_type_name(None) == "Unspecified"

    def test_full_status(self):
        assert execution_status("WORKFLOW_EXECUTION_STATUS_CONTINUED_AS_NEW") is ExecutionStatus.CONTINUED_AS_NEW

    def test_shorthand_status(self):
        assert execution_status("Running") is ExecutionStatus.RUNNING

    def test_unknown_status(self):
        assert execution_status("Paused") is ExecutionStatus.UNSPECIFIED


class TestTimestamps:
    def test_nanoseconds_and_z(self):
        dt = parse_timestamp("2024-05-01T12:00:00.123456789Z")
        assert dt == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    def test_epoch_is_unset(self):
        assert parse_timestamp("1970-01-01T00:00:00Z") is None

    def test_garbage(self):
        assert parse_timestamp("yesterday") is None


class TestParseExecution:
    def test_full_info(self):
        info = {
            "execution": {"workflowId": "order-1", "runId": "r1"},
            "type": {"name": "OrderWorkflow"},
            "status": "WORKFLOW_EXECUTION_STATUS_COMPLETED",
            "startTime": "2024-05-01T12:00:00Z",
            "closeTime": "2024-05-01T12:05:00Z",
            "parentExecution": {"workflowId": "batch-1", "runId": "r0"},
            "historyLength": "42",
        }
        execution = parse_execution(info)
        assert execution.workflow_id == "order-1"
        assert execution.workflow_type == "OrderWorkflow"
        assert execution.status is ExecutionStatus.COMPLETED
        assert execution.close_time.minute == 5
        assert execution.parent_workflow_id == "batch-1"
        assert execution.is_child
        assert execution.history_length == 42

    def test_running_has_no_close_time(self):
        execution = parse_execution({"execution": {"workflowId": "a"}, "status": "Running"})
        assert execution.is_running
        assert execution.close_time is None
        assert not execution.is_child


class TestParseEvent:
    def test_attributes_and_int_ids(self):
        event = parse_event({
            "eventId": "6",
            "eventType": "EVENT_TYPE_ACTIVITY_TASK_STARTED",
            "eventTime": "2024-05-01T12:00:00Z",
            "activityTaskStartedEventAttributes": {"scheduledEventId": "5", "attempt": 2},
        })
        assert event.event_id == 6
        assert event.event_type == "ActivityTaskStarted"
        assert event.ref("scheduledEventId") == 5
        assert event.ref("missing") is None


class TestFailuresAndPayloads:
    def test_cause_message_preferred(self):
        assert failure_message({"message": "outer", "cause": {"message": "inner"}}) == "inner"

    def test_plain_message(self):
        assert failure_message({"message": "outer"}) == "outer"

    def test_no_failure(self):
        assert failure_message(None) is None

    def test_pending_activity(self):
        info = parse_pending_activity({
            "activityId": "5",
            "activityType": {"name": "Charge"},
            "attempt": 3,
            "lastFailure": {"message": "declined"},
        })
        assert info.attempt == 3
        assert info.last_failure == "declined"

    def test_encoded_payload(self):
        rendered = render_payloads({"payloads": [_encoded({"id": 1})]})
        assert json.loads(rendered) == {"id": 1}
        assert rendered.startswith("{\n  ")

    def test_shorthand_payload(self):
        assert render_payloads({"payloads": [{"id": 1}]}) == '{\n  "id": 1\n}'

    def test_first_payload_only(self):
        assert render_payloads({"payloads": ["one", "two"]}) == "one"

    def test_no_payloads(self):
        assert render_payloads(None) is None
        assert render_payloads({"payloads": []}) is None

    def test_unicode_kept(self):
        assert "café" in render_payloads({"payloads": [{"name": "café"}]})
