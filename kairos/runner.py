"""Executes reducer effects against the backend.

Each backend effect is turned into exactly one result event. Failures are
logged and reported as the matching ``*Failed`` event; they never escape to
the caller, so a worker thread always has something to hand back.
"""

from __future__ import annotations

import logging
import webbrowser

import requests

from kairos_sdk import TemporalAPIError, TemporalError, TemporalNotFoundError

from . import effects as fx, events as ev
from .confirm import RESTART, TERMINATE, BoundAction, Target
from .history import first_workflow_task_event_id
from .listing import resolve_attempts

logger = logging.getLogger(__name__)

# What a backend call can raise for reasons outside our control
BACKEND_ERRORS = (TemporalError, requests.RequestException, TimeoutError, ValueError)


def describe_error(error: Exception) -> str:
    """Error text for the prompt line, tagged with the gRPC code when known."""
    if isinstance(error, TemporalAPIError) and error.code_name:
        return f"{error} [{error.code_name}]"
    return str(error)


class EffectRunner:
    """Runs one effect at a time. Safe to call from worker threads."""

    def __init__(self, backend):
        self.backend = backend
        self._handlers = {
            fx.FetchExecutions: self._fetch_executions,
            fx.SyncStatuses: self._sync_statuses,
            fx.ResolveAttempts: self._resolve_attempts,
            fx.CountExecutions: self._count_executions,
            fx.LoadFocus: self._load_focus,
            fx.RunAction: self._run_action,
            fx.FetchSuggestions: self._fetch_suggestions,
            fx.OpenUrl: self._open_url,
        }

    def execute(self, effect):
        """Run ``effect`` and return the resulting event (None for OpenUrl).

        Raises:
            TypeError: If the effect is not one the runner handles.
        """
        handler = self._handlers.get(type(effect))
        if handler is None:
            raise TypeError(f"Effect not handled by the runner: {effect!r}")
        return handler(effect)

    def _fetch_executions(self, effect: fx.FetchExecutions):
        try:
            executions, next_token = self.backend.list_executions(
                effect.query, effect.page_size, effect.page_token
            )
        except BACKEND_ERRORS as e:
            logger.exception("Listing workflows failed")
            return ev.ExecutionsFailed(effect.generation, str(e))
        return ev.ExecutionsLoaded(
            generation=effect.generation,
            page=effect.page,
            executions=tuple(executions),
            next_token=next_token,
        )

    def _sync_statuses(self, effect: fx.SyncStatuses):
        try:
            executions = self.backend.sync_statuses(effect.workflow_ids)
        except BACKEND_ERRORS as e:
            logger.warning("Status sync failed: %s", e)
            return ev.StatusSyncFailed(str(e))
        return ev.StatusesSynced(tuple(executions))

    def _resolve_attempts(self, effect: fx.ResolveAttempts):
        attempts: dict[tuple[str, str], int] = {}
        try:
            for target in effect.targets:
                try:
                    _, pending = self.backend.describe_execution(target.workflow_id, target.run_id)
                except TemporalNotFoundError:
                    # Retention can remove an execution between list and describe
                    logger.info("Execution %s no longer exists", target.workflow_id)
                    continue
                attempts[(target.workflow_id, target.run_id)] = resolve_attempts(pending)
        except BACKEND_ERRORS as e:
            logger.warning("Attempt sync failed: %s", e)
            return ev.AttemptsFailed(str(e))
        return ev.AttemptsResolved(attempts)

    def _count_executions(self, effect: fx.CountExecutions):
        try:
            count = self.backend.count_executions(effect.query)
        except BACKEND_ERRORS as e:
            logger.warning("Count for %s failed: %s", effect.status.value, e)
            return ev.CountFailed(effect.status, str(e), rearm=effect.rearm)
        return ev.CountLoaded(effect.status, effect.query, count, rearm=effect.rearm)

    def _load_focus(self, effect: fx.LoadFocus):
        try:
            execution, pending = self.backend.describe_execution(effect.workflow_id, effect.run_id)
            events = self.backend.get_history(effect.workflow_id, effect.run_id)
        except BACKEND_ERRORS as e:
            logger.exception("Loading %s failed", effect.workflow_id)
            return ev.FocusFailed(effect.request_id, str(e))
        return ev.FocusLoaded(
            request_id=effect.request_id,
            workflow_id=effect.workflow_id,
            run_id=effect.run_id,
            execution=execution,
            events=tuple(events),
            pending=tuple(pending),
            reload=effect.reload,
        )

    def _run_action(self, effect: fx.RunAction):
        action = effect.action
        failures = []
        for target in action.targets:
            try:
                self._apply(action, target)
            except BACKEND_ERRORS as e:
                logger.exception("%s of %s failed", action.kind, target.workflow_id)
                failures.append((target, e))
        if not failures:
            return ev.ActionFinished()
        target, error = failures[0]
        if len(action.targets) == 1:
            return ev.ActionFinished(describe_error(error))
        return ev.ActionFinished(
            f"{len(failures)} of {len(action.targets)} failed ({target.workflow_id}: {describe_error(error)})"
        )

    def _apply(self, action: BoundAction, target: Target) -> None:
        if action.kind == TERMINATE:
            self.backend.terminate_execution(target.workflow_id, target.run_id, action.reason)
        elif action.kind == RESTART:
            events = self.backend.get_history(target.workflow_id, target.run_id)
            event_id = first_workflow_task_event_id(events)
            if event_id is None:
                raise ValueError(f"{target.workflow_id} has no workflow task to reset to")
            new_run = self.backend.reset_execution(
                target.workflow_id, target.run_id, event_id, action.reason
            )
            logger.info("Reset %s to event %d, new run %s", target.workflow_id, event_id, new_run)
        else:
            raise ValueError(f"Unknown action: {action.kind}")

    def _fetch_suggestions(self, effect: fx.FetchSuggestions):
        try:
            options = self.backend.suggest_values(effect.field, effect.prefix)
        except BACKEND_ERRORS as e:
            logger.warning("Suggestions for %s failed: %s", effect.field.value, e)
            options = []
        return ev.SuggestionsLoaded(effect.field, effect.prefix, tuple(options))

    def _open_url(self, effect: fx.OpenUrl):
        url = self.backend.execution_url(effect.workflow_id, effect.run_id)
        if not webbrowser.open(url):
            logger.warning("No browser available for %s", url)
        return None
