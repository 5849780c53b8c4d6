"""Data layer for the dashboard.

Wraps the Temporal HTTP SDK and converts its JSON responses into the domain
types in kairos.models. Every method blocks on the network, so the dashboard
calls them from worker threads only.
"""

from __future__ import annotations

import logging
from typing import Any

from requests.utils import quote

from kairos_sdk import TemporalSDK

from .codec import parse_event, parse_execution, parse_pending_activity
from .config import Profile
from .models import ExecutionSnapshot, HistoryEvent, PendingActivityInfo
from .query import SearchField, prefix_query, running_ids_query

logger = logging.getLogger(__name__)

# Upper bound on search suggestions per keystroke
SUGGESTION_LIMIT = 10

# Guards against a server that never stops handing out page tokens
MAX_HISTORY_PAGES = 500

SYNC_PAGE_SIZE = 100
MAX_SYNC_PAGES = 20


def create_sdk(profile: Profile) -> TemporalSDK:
    return TemporalSDK(
        server_url=profile.server_url,
        namespace=profile.namespace,
        api_key=profile.api_key,
        client_cert=profile.client_cert,
    )


class Backend:
    """Fetches executions and histories, and runs destructive actions."""

    def __init__(self, sdk: TemporalSDK, profile: Profile):
        self.sdk = sdk
        self.profile = profile

    @classmethod
    def from_profile(cls, profile: Profile) -> "Backend":
        return cls(create_sdk(profile), profile)

    def close(self) -> None:
        self.sdk.close()

    def system_info(self) -> dict[str, Any]:
        """Probe the server. Raises on any connection or auth problem."""
        return self.sdk.system.info() or {}

    def list_executions(
        self,
        query: str,
        page_size: int,
        page_token: str | None = None,
    ) -> tuple[list[ExecutionSnapshot], str | None]:
        """Fetch one page of executions.

        Returns:
            (executions, next_page_token); the token is None on the last page.
        """
        response = self.sdk.workflows.list(query, page_size=page_size, next_page_token=page_token)
        executions = [parse_execution(info) for info in response.get("executions") or []]
        return executions, response.get("nextPageToken") or None

    def count_executions(self, query: str) -> int:
        return self.sdk.workflows.count(query)

    def sync_statuses(self, workflow_ids: tuple[str, ...] | list[str]) -> list[ExecutionSnapshot]:
        """Fetch current status of every run of the given workflow IDs.

        A workflow ID can have any number of runs, so this follows page
        tokens rather than sizing one page to the ID count.
        """
        if not workflow_ids:
            return []
        query = running_ids_query(workflow_ids)
        executions: list[ExecutionSnapshot] = []
        token = None
        for _ in range(MAX_SYNC_PAGES):
            page, token = self.list_executions(query, SYNC_PAGE_SIZE, token)
            executions.extend(page)
            if not token:
                return executions
        logger.warning("Status sync for %d IDs truncated after %d pages", len(workflow_ids), MAX_SYNC_PAGES)
        return executions

    def describe_execution(
        self,
        workflow_id: str,
        run_id: str | None = None,
    ) -> tuple[ExecutionSnapshot, list[PendingActivityInfo]]:
        response = self.sdk.workflows.describe(workflow_id, run_id) or {}
        snapshot = parse_execution(response.get("workflowExecutionInfo") or {})
        pending = [parse_pending_activity(p) for p in response.get("pendingActivities") or []]
        return snapshot, pending

    def get_history(self, workflow_id: str, run_id: str | None = None) -> list[HistoryEvent]:
        """Fetch the complete history, following page tokens to the end."""
        events: list[HistoryEvent] = []
        token = None
        for _ in range(MAX_HISTORY_PAGES):
            response = self.sdk.workflows.history_page(workflow_id, run_id, next_page_token=token) or {}
            history = response.get("history") or {}
            events.extend(parse_event(e) for e in history.get("events") or [])
            token = response.get("nextPageToken")
            if not token:
                return events
        logger.warning("History for %s truncated after %d pages", workflow_id, MAX_HISTORY_PAGES)
        return events

    def suggest_values(self, search_field: SearchField, prefix: str) -> list[str]:
        """Distinct values of a field starting with ``prefix``, in server order."""
        executions, _ = self.list_executions(
            prefix_query(search_field, prefix), page_size=SUGGESTION_LIMIT * 4
        )
        values: list[str] = []
        for execution in executions:
            if search_field is SearchField.WORKFLOW_TYPE:
                value = execution.workflow_type
            else:
                value = execution.workflow_id
            if value and value not in values:
                values.append(value)
            if len(values) >= SUGGESTION_LIMIT:
                break
        return values

    def terminate_execution(self, workflow_id: str, run_id: str | None, reason: str) -> None:
        self.sdk.workflows.terminate(workflow_id, run_id, reason)

    def reset_execution(
        self,
        workflow_id: str,
        run_id: str | None,
        event_id: int,
        reason: str,
    ) -> str | None:
        """Reset to ``event_id``. Returns the new run ID if the server sent one."""
        response = self.sdk.workflows.reset(workflow_id, run_id, event_id, reason) or {}
        return response.get("runId") or None

    def execution_url(self, workflow_id: str, run_id: str) -> str:
        base = self.profile.browser_url
        namespace = quote(self.profile.namespace, safe="")
        return (
            f"{base}/namespaces/{namespace}/workflows/"
            f"{quote(workflow_id, safe='')}/{quote(run_id, safe='')}/history"
        )
