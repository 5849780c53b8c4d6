"""Dashboard state and the reducer that advances it.

``reduce(state, event)`` is the only way state changes. It returns the new
state plus a list of effects for the runner; it does no I/O of its own.

Background refresh runs on three kinds of self-rearming timer (status sync,
attempt sync, one count per headline status). A tick issues one fetch, and
the next tick is only scheduled once that fetch's result has been applied.
Results that are no longer relevant when they arrive are dropped here rather
than cancelled in flight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Mapping

from . import confirm, effects as fx, events as ev, focus
from .config import RefreshSettings
from .history import OrphanedEventError
from .listing import (
    ListRow,
    PageTokenMissing,
    Pagination,
    RowIdentity,
    merge_attempts,
    merge_statuses,
    rows_from,
    running_rows,
)
from .models import HEADLINE_STATUSES, ExecutionStatus
from .query import STATUS_SUGGESTIONS, SearchField, SearchFilters, build_query, with_status

logger = logging.getLogger(__name__)

Effects = list
Result = tuple["AppState", Effects]


@dataclass(frozen=True)
class SearchState:
    field: SearchField | None = None
    text: str = ""
    suggestions: tuple[str, ...] = ()

    @property
    def active(self) -> bool:
        return self.field is not None


@dataclass(frozen=True)
class AppState:
    settings: RefreshSettings = field(default_factory=RefreshSettings)
    rows: tuple[ListRow, ...] = ()
    pagination: Pagination = field(default_factory=Pagination)
    cursor: int = 0
    # Row identities, (workflow_id, run_id)
    selected: frozenset[RowIdentity] = frozenset()
    filters: SearchFilters = field(default_factory=SearchFilters)
    parents_only: bool = False
    search: SearchState = field(default_factory=SearchState)
    focus: focus.FocusStack = ()
    confirmation: confirm.ConfirmationState = field(default_factory=confirm.ConfirmationState)
    counts: Mapping[ExecutionStatus, int] = field(default_factory=dict)
    # Bumped on every full refetch; older list results are stale
    generation: int = 0
    loading: bool = False
    # Id of the newest focus request; 0 means none outstanding
    focus_request: int = 0
    focus_pending: bool = False
    last_error: str = ""
    show_help: bool = False

    @property
    def query(self) -> str:
        return build_query(self.filters, self.parents_only)

    @property
    def current_row(self) -> ListRow | None:
        if 0 <= self.cursor < len(self.rows):
            return self.rows[self.cursor]
        return None

    @property
    def top_frame(self) -> focus.FocusFrame | None:
        return focus.top(self.focus)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _full_refetch(state: AppState, page: int = 0) -> Result:
    """Request a page of the list, superseding any request in flight."""
    token = state.pagination.token_for(page)
    generation = state.generation + 1
    state = replace(state, generation=generation, loading=True)
    effect = fx.FetchExecutions(
        generation=generation,
        query=state.query,
        page=page,
        page_size=state.settings.page_size,
        page_token=token,
    )
    return state, [effect]


def _count_effects(state: AppState, rearm: bool) -> Effects:
    return [
        fx.CountExecutions(status=s, query=with_status(state.query, s), rearm=rearm)
        for s in HEADLINE_STATUSES
    ]


def _requery(state: AppState) -> Result:
    """Filters or view mode changed: restart from page 0 with fresh counts."""
    state = replace(state, pagination=Pagination(), cursor=0, selected=frozenset())
    state, effects = _full_refetch(state)
    return state, effects + _count_effects(state, rearm=False)


def _error(state: AppState, message: str, severity: str = "error") -> Result:
    return replace(state, last_error=message), [fx.Notify(message, severity)]


def _request_focus(state: AppState, workflow_id: str, run_id: str, reload: bool = False) -> Result:
    """Issue a focus load. Only drill-downs mark the stack as pending.

    A reload never supersedes a drill-down still in flight.
    """
    if reload and state.focus_pending:
        return state, []
    request_id = state.focus_request + 1
    state = replace(state, focus_request=request_id, focus_pending=not reload)
    return state, [fx.LoadFocus(request_id, workflow_id, run_id, reload=reload)]


def _focus_relevant(state: AppState, request_id: int, reload: bool) -> bool:
    if request_id != state.focus_request:
        return False
    return reload or state.focus_pending


def _targets(state: AppState) -> tuple[confirm.Target, ...]:
    frame = state.top_frame
    if frame is not None:
        return (confirm.Target(frame.workflow_id, frame.run_id),)
    if state.selected:
        return tuple(
            confirm.Target(*r.identity)
            for r in state.rows
            if r.identity in state.selected
        )
    row = state.current_row
    if row is None:
        return ()
    return (confirm.Target(*row.identity),)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def _on_started(state: AppState, event: ev.Started) -> Result:
    state, effects = _full_refetch(state)
    effects += _count_effects(state, rearm=True)
    effects.append(fx.Schedule(state.settings.status_seconds, ev.StatusSyncTick()))
    effects.append(fx.Schedule(state.settings.attempts_seconds, ev.AttemptSyncTick()))
    return state, effects


def _on_quit(state: AppState, event: ev.Quit) -> Result:
    return state, [fx.Exit(0)]


def _on_toggle_help(state: AppState, event: ev.ToggleHelp) -> Result:
    return replace(state, show_help=not state.show_help), []


# ---------------------------------------------------------------------------
# List: full refetch and paging
# ---------------------------------------------------------------------------


def _on_refresh(state: AppState, event: ev.Refresh) -> Result:
    frame = state.top_frame
    if frame is not None:
        if state.focus_pending:
            return state, [fx.Notify("Still loading workflow history", "information")]
        return _request_focus(state, frame.workflow_id, frame.run_id, reload=True)
    return _full_refetch(replace(state, last_error=""), state.pagination.page)


def _on_page(state: AppState, delta: int) -> Result:
    target = state.pagination.page + delta
    if target < 0:
        return state, []
    try:
        return _full_refetch(state, target)
    except PageTokenMissing:
        return state, [fx.Notify("No more pages", "information")]


def _on_next_page(state: AppState, event: ev.NextPage) -> Result:
    return _on_page(state, 1)


def _on_prev_page(state: AppState, event: ev.PrevPage) -> Result:
    return _on_page(state, -1)


def _on_executions_loaded(state: AppState, event: ev.ExecutionsLoaded) -> Result:
    if event.generation != state.generation:
        logger.debug("Dropping stale list result %s", event.generation)
        return state, []
    known = {r.identity: r.attempts for r in state.rows}
    rows = tuple(
        replace(row, attempts=known.get(row.identity, 0)) if row.execution.is_running else row
        for row in rows_from(event.executions)
    )
    identities = {r.identity for r in rows}
    state = replace(
        state,
        rows=rows,
        pagination=state.pagination.recorded(event.page, event.next_token),
        cursor=min(state.cursor, max(len(rows) - 1, 0)),
        selected=frozenset(i for i in state.selected if i in identities),
        loading=False,
        last_error="",
    )
    return state, []


def _on_executions_failed(state: AppState, event: ev.ExecutionsFailed) -> Result:
    if event.generation != state.generation:
        return state, []
    return _error(replace(state, loading=False), f"Failed to list workflows: {event.error}")


# ---------------------------------------------------------------------------
# Background sync
# ---------------------------------------------------------------------------


def _rearm_status(state: AppState) -> fx.Schedule:
    return fx.Schedule(state.settings.status_seconds, ev.StatusSyncTick())


def _rearm_attempts(state: AppState) -> fx.Schedule:
    return fx.Schedule(state.settings.attempts_seconds, ev.AttemptSyncTick())


def _on_status_tick(state: AppState, event: ev.StatusSyncTick) -> Result:
    # One query per workflow ID; the result can hold several runs of each
    ids = tuple(dict.fromkeys(r.execution.workflow_id for r in running_rows(state.rows)))
    if not ids:
        return state, [_rearm_status(state)]
    return state, [fx.SyncStatuses(ids)]


def _on_statuses_synced(state: AppState, event: ev.StatusesSynced) -> Result:
    rows = merge_statuses(state.rows, event.executions)
    return replace(state, rows=rows), [_rearm_status(state)]


def _on_status_sync_failed(state: AppState, event: ev.StatusSyncFailed) -> Result:
    state, effects = _error(state, f"Status sync failed: {event.error}", "warning")
    return state, effects + [_rearm_status(state)]


def _on_attempt_tick(state: AppState, event: ev.AttemptSyncTick) -> Result:
    targets = tuple(
        confirm.Target(*r.identity) for r in running_rows(state.rows)
    )
    if not targets:
        return state, [_rearm_attempts(state)]
    return state, [fx.ResolveAttempts(targets)]


def _on_attempts_resolved(state: AppState, event: ev.AttemptsResolved) -> Result:
    rows = merge_attempts(state.rows, event.attempts)
    return replace(state, rows=rows), [_rearm_attempts(state)]


def _on_attempts_failed(state: AppState, event: ev.AttemptsFailed) -> Result:
    state, effects = _error(state, f"Attempt sync failed: {event.error}", "warning")
    return state, effects + [_rearm_attempts(state)]


def _rearm_count(state: AppState, status: ExecutionStatus, rearm: bool) -> Effects:
    if not rearm:
        return []
    return [fx.Schedule(state.settings.counts_seconds, ev.CountTick(status))]


def _on_count_tick(state: AppState, event: ev.CountTick) -> Result:
    return state, [fx.CountExecutions(event.status, with_status(state.query, event.status))]


def _on_count_loaded(state: AppState, event: ev.CountLoaded) -> Result:
    if event.query == with_status(state.query, event.status):
        counts = dict(state.counts)
        counts[event.status] = event.count
        state = replace(state, counts=counts)
    return state, _rearm_count(state, event.status, event.rearm)


def _on_count_failed(state: AppState, event: ev.CountFailed) -> Result:
    logger.info("Count for %s failed: %s", event.status.value, event.error)
    return state, _rearm_count(state, event.status, event.rearm)


# ---------------------------------------------------------------------------
# Search and filters
# ---------------------------------------------------------------------------


def _on_start_search(state: AppState, event: ev.StartSearch) -> Result:
    return replace(state, search=SearchState(field=event.field)), []


def _on_search_text(state: AppState, event: ev.SearchTextChanged) -> Result:
    search = state.search
    if not search.active:
        return state, []
    if search.field is SearchField.EXECUTION_STATUS:
        prefix = event.text.strip().lower()
        options = tuple(s for s in STATUS_SUGGESTIONS if prefix and s.lower().startswith(prefix))
        return replace(state, search=replace(search, text=event.text, suggestions=options)), []
    state = replace(state, search=replace(search, text=event.text, suggestions=()))
    if not event.text:
        return state, []
    return state, [fx.FetchSuggestions(search.field, event.text)]


def _on_suggestions_loaded(state: AppState, event: ev.SuggestionsLoaded) -> Result:
    search = state.search
    if search.field is not event.field or search.text != event.prefix:
        return state, []
    return replace(state, search=replace(search, suggestions=event.options)), []


def _on_accept_suggestion(state: AppState, event: ev.AcceptSuggestion) -> Result:
    search = state.search
    if not search.suggestions:
        return state, []
    return replace(state, search=replace(search, text=search.suggestions[0], suggestions=())), []


def _on_submit_search(state: AppState, event: ev.SubmitSearch) -> Result:
    search = state.search
    if not search.active:
        return state, []
    filters = state.filters.with_value(search.field, search.text)
    state = replace(state, search=SearchState())
    if filters == state.filters:
        return state, []
    return _requery(replace(state, filters=filters))


def _on_cancel_search(state: AppState, event: ev.CancelSearch) -> Result:
    return replace(state, search=SearchState()), []


def _on_clear_filters(state: AppState, event: ev.ClearFilters) -> Result:
    return _requery(replace(state, filters=SearchFilters()))


def _on_toggle_parents_only(state: AppState, event: ev.ToggleParentsOnly) -> Result:
    return _requery(replace(state, parents_only=not state.parents_only))


# ---------------------------------------------------------------------------
# Cursor, selection and focus
# ---------------------------------------------------------------------------


def _on_move_cursor(state: AppState, event: ev.MoveCursor) -> Result:
    frame = state.top_frame
    if frame is not None:
        return replace(state, focus=focus.replace_top(state.focus, frame.moved(event.delta))), []
    last = max(len(state.rows) - 1, 0)
    return replace(state, cursor=max(0, min(last, state.cursor + event.delta))), []


def _on_toggle_selection(state: AppState, event: ev.ToggleSelection) -> Result:
    row = state.current_row
    if row is None or state.focus:
        return state, []
    return replace(state, selected=state.selected ^ {row.identity}), []


def _on_focus_selected(state: AppState, event: ev.FocusSelected) -> Result:
    row = state.current_row
    if row is None or state.focus:
        return state, []
    return _request_focus(state, *row.identity)


def _on_drill_into_child(state: AppState, event: ev.DrillIntoChild) -> Result:
    frame = state.top_frame
    if frame is None:
        return state, []
    target = focus.child_target(frame)
    if target is None:
        return state, [fx.Notify("No started child workflow under the cursor", "information")]
    return _request_focus(state, *target)


def _on_back(state: AppState, event: ev.Back) -> Result:
    if state.focus_pending:
        return replace(state, focus_pending=False, focus_request=state.focus_request + 1), []
    if not state.focus:
        return state, []
    return replace(state, focus=focus.pop(state.focus)), []


def _on_focus_loaded(state: AppState, event: ev.FocusLoaded) -> Result:
    if not _focus_relevant(state, event.request_id, event.reload):
        return state, []
    state = replace(state, focus_pending=False)
    try:
        frame = focus.build_frame(
            event.workflow_id, event.run_id, event.execution, event.events, event.pending
        )
    except OrphanedEventError as e:
        logger.warning("Malformed history for %s: %s", event.workflow_id, e)
        return _error(state, str(e))
    if not event.reload:
        return replace(state, focus=focus.push(state.focus, frame)), []
    current = state.top_frame
    if current is None or current.workflow_id != event.workflow_id:
        return state, []
    frame = replace(frame, cursor=current.cursor).moved(0)
    return replace(state, focus=focus.replace_top(state.focus, frame)), []


def _on_focus_failed(state: AppState, event: ev.FocusFailed) -> Result:
    # Back bumps the request id, so a cancelled load never matches
    if event.request_id != state.focus_request:
        return state, []
    return _error(replace(state, focus_pending=False), f"Failed to load workflow: {event.error}")


def _on_open_in_browser(state: AppState, event: ev.OpenInBrowser) -> Result:
    targets = _targets(replace(state, selected=frozenset()))
    if not targets:
        return state, []
    return state, [fx.OpenUrl(targets[0].workflow_id, targets[0].run_id)]


# ---------------------------------------------------------------------------
# Destructive actions
# ---------------------------------------------------------------------------


def _on_request_action(state: AppState, event: ev.RequestAction) -> Result:
    targets = _targets(state)
    if not targets:
        return state, []
    action, prompt, success_text = confirm.bind(event.kind, targets)
    try:
        confirmation = confirm.request(state.confirmation, action, prompt, success_text)
    except confirm.ConfirmationBusy as e:
        return state, [fx.Notify(str(e), "warning")]
    return replace(state, confirmation=confirmation), []


def _on_confirm(state: AppState, event: ev.Confirm) -> Result:
    awaiting = state.confirmation.phase is confirm.Phase.AWAITING_CONFIRMATION
    confirmation = confirm.respond(state.confirmation, event.confirmed)
    state = replace(state, confirmation=confirmation)
    if awaiting and confirmation.phase is confirm.Phase.EXECUTING:
        return state, [fx.RunAction(confirmation.action)]
    return state, []


def _on_action_finished(state: AppState, event: ev.ActionFinished) -> Result:
    if state.confirmation.phase is not confirm.Phase.EXECUTING:
        return state, []
    state = replace(state, confirmation=confirm.complete(state.confirmation, event.error))
    effects: Effects = [fx.Schedule(confirm.DISPLAY_SECONDS, ev.ConfirmationExpired())]
    if event.error:
        return state, effects
    state = replace(state, selected=frozenset())
    state, refetch = _full_refetch(state, state.pagination.page)
    effects += refetch
    frame = state.top_frame
    if frame is not None:
        state, reload = _request_focus(state, frame.workflow_id, frame.run_id, reload=True)
        effects += reload
    return state, effects


def _on_confirmation_expired(state: AppState, event: ev.ConfirmationExpired) -> Result:
    return replace(state, confirmation=confirm.expire(state.confirmation)), []


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_HANDLERS: dict[type, Callable[[AppState, object], Result]] = {
    ev.Started: _on_started,
    ev.Quit: _on_quit,
    ev.ToggleHelp: _on_toggle_help,
    ev.Refresh: _on_refresh,
    ev.NextPage: _on_next_page,
    ev.PrevPage: _on_prev_page,
    ev.ExecutionsLoaded: _on_executions_loaded,
    ev.ExecutionsFailed: _on_executions_failed,
    ev.StatusSyncTick: _on_status_tick,
    ev.StatusesSynced: _on_statuses_synced,
    ev.StatusSyncFailed: _on_status_sync_failed,
    ev.AttemptSyncTick: _on_attempt_tick,
    ev.AttemptsResolved: _on_attempts_resolved,
    ev.AttemptsFailed: _on_attempts_failed,
    ev.CountTick: _on_count_tick,
    ev.CountLoaded: _on_count_loaded,
    ev.CountFailed: _on_count_failed,
    ev.StartSearch: _on_start_search,
    ev.SearchTextChanged: _on_search_text,
    ev.SuggestionsLoaded: _on_suggestions_loaded,
    ev.AcceptSuggestion: _on_accept_suggestion,
    ev.SubmitSearch: _on_submit_search,
    ev.CancelSearch: _on_cancel_search,
    ev.ClearFilters: _on_clear_filters,
    ev.ToggleParentsOnly: _on_toggle_parents_only,
    ev.MoveCursor: _on_move_cursor,
    ev.ToggleSelection: _on_toggle_selection,
    ev.FocusSelected: _on_focus_selected,
    ev.DrillIntoChild: _on_drill_into_child,
    ev.Back: _on_back,
    ev.FocusLoaded: _on_focus_loaded,
    ev.FocusFailed: _on_focus_failed,
    ev.OpenInBrowser: _on_open_in_browser,
    ev.RequestAction: _on_request_action,
    ev.Confirm: _on_confirm,
    ev.ActionFinished: _on_action_finished,
    ev.ConfirmationExpired: _on_confirmation_expired,
}


def reduce(state: AppState, event: object) -> Result:
    """Apply one event to the state.

    Returns:
        (new_state, effects)

    Raises:
        TypeError: If the event type has no handler.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unhandled event: {event!r}")
    return handler(state, event)
