"""Conversion from Temporal HTTP API JSON to domain types.

The HTTP API serialises protobuf messages as JSON: camelCase field names,
int64 values as strings, enums either in full (``EVENT_TYPE_TIMER_FIRED``) or
shorthand (``TimerFired``) form, and payloads either as
``{"metadata": ..., "data": <base64>}`` or as a plain JSON value.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from datetime import datetime, timezone
from typing import Any

from .models import (
    ExecutionSnapshot,
    ExecutionStatus,
    HistoryEvent,
    PendingActivityInfo,
)

_EVENT_TYPE_PREFIX = "EVENT_TYPE_"
_STATUS_PREFIX = "WORKFLOW_EXECUTION_STATUS_"

# Fractional seconds longer than microseconds (Temporal sends nanoseconds)
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def _camel(upper_snake: str) -> str:
    return "".join(part.capitalize() for part in upper_snake.lower().split("_"))


def event_type_name(raw: str | None) -> str:
    """Normalise an event type enum to its CamelCase shorthand."""
    if not raw:
        return "Unspecified"
    if raw.startswith(_EVENT_TYPE_PREFIX):
        return _camel(raw[len(_EVENT_TYPE_PREFIX):])
    if raw.isupper():
        return _camel(raw)
    return raw


def execution_status(raw: str | None) -> ExecutionStatus:
    """Normalise an execution status enum to ExecutionStatus."""
    if not raw:
        return ExecutionStatus.UNSPECIFIED
    if raw.startswith(_STATUS_PREFIX):
        raw = _camel(raw[len(_STATUS_PREFIX):])
    try:
        return ExecutionStatus(raw)
    except ValueError:
        return ExecutionStatus.UNSPECIFIED


def parse_timestamp(raw: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp; None for missing or zero timestamps."""
    if not raw:
        return None
    try:
        cleaned = _FRACTION_RE.sub(r".\1", str(raw).replace("Z", "+00:00"))
        dt = datetime.fromisoformat(cleaned)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # Unset proto timestamps come back as the epoch
    if dt.year <= 1970:
        return None
    return dt


def parse_execution(info: dict[str, Any]) -> ExecutionSnapshot:
    """Build an ExecutionSnapshot from a WorkflowExecutionInfo object."""
    execution = info.get("execution") or {}
    parent = info.get("parentExecution") or {}
    return ExecutionSnapshot(
        workflow_id=execution.get("workflowId", ""),
        run_id=execution.get("runId", ""),
        workflow_type=(info.get("type") or {}).get("name", ""),
        status=execution_status(info.get("status")),
        start_time=parse_timestamp(info.get("startTime")),
        close_time=parse_timestamp(info.get("closeTime")),
        parent_workflow_id=parent.get("workflowId") or None,
        history_length=int(info.get("historyLength") or 0),
    )


def parse_event(data: dict[str, Any]) -> HistoryEvent:
    """Build a HistoryEvent from a history event object.

    The attribute object is the single ``*EventAttributes`` field present on
    the event.
    """
    attributes: dict[str, Any] = {}
    for key, value in data.items():
        if key.endswith("EventAttributes") and isinstance(value, dict):
            attributes = value
            break
    return HistoryEvent(
        event_id=int(data.get("eventId") or 0),
        event_type=event_type_name(data.get("eventType")),
        attributes=attributes,
        event_time=parse_timestamp(data.get("eventTime")),
    )


def failure_message(failure: dict[str, Any] | None) -> str | None:
    """Return the most specific message in a Failure object."""
    if not failure:
        return None
    cause = failure.get("cause") or {}
    return cause.get("message") or failure.get("message") or None


def parse_pending_activity(data: dict[str, Any]) -> PendingActivityInfo:
    return PendingActivityInfo(
        activity_id=data.get("activityId", ""),
        activity_type=(data.get("activityType") or {}).get("name", ""),
        attempt=int(data.get("attempt") or 0),
        last_failure=failure_message(data.get("lastFailure")),
    )


def _decode_payload(payload: Any) -> Any:
    if isinstance(payload, dict) and "data" in payload and "metadata" in payload:
        try:
            raw = base64.b64decode(payload["data"] or "")
        except (binascii.Error, TypeError):
            return payload["data"]
        text = raw.decode("utf-8", errors="replace")
        try:
            return json.loads(text)
        except ValueError:
            return text
    return payload


def render_payloads(container: Any) -> str | None:
    """Render the first payload of a Payloads object as pretty JSON.

    Returns None when there is no payload to show.
    """
    if isinstance(container, dict):
        payloads = container.get("payloads")
    else:
        payloads = container
    if not payloads:
        return None
    value = _decode_payload(payloads[0])
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False)
