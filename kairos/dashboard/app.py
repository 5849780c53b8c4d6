"""Kairos Dashboard: Textual TUI app.

Launch with: python -m kairos.dashboard
"""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.events import Key
from textual.widgets import ContentSwitcher, Header

from .. import effects as fx
from ..config import Profile, RefreshSettings
from ..events import Started
from ..keymap import translate
from ..runner import EffectRunner
from ..state import AppState, reduce
from .widgets.execution_table import ExecutionTable
from .widgets.help_panel import HelpPanel
from .widgets.history_view import HistoryView
from .widgets.prompt_bar import PromptBar
from .widgets.summary_bar import SummaryBar

logger = logging.getLogger(__name__)


class KairosDashboard(App):
    """Temporal workflow dashboard built with Textual.

    All keys go through ``translate`` and every state change goes through
    ``reduce``; this class only renders state and carries out effects.
    Backend effects run in worker threads and report back on the UI thread.
    """

    CSS_PATH = Path(__file__).parent / "styles" / "dashboard.tcss"

    TITLE = "Kairos"

    # Keys Textual would otherwise claim before on_key sees them
    BINDINGS = [
        Binding("tab", "forward_key('tab')", show=False, priority=True),
        Binding("ctrl+c", "forward_key('ctrl+c')", show=False, priority=True),
    ]

    def __init__(
        self,
        backend,
        settings: RefreshSettings | None = None,
        profile: Profile | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self._runner = EffectRunner(backend)
        self._state = AppState(settings=settings or RefreshSettings())
        if profile is not None:
            self.sub_title = f"{profile.name} · {profile.namespace}"

    @property
    def state(self) -> AppState:
        return self._state

    def compose(self) -> ComposeResult:
        yield Header()
        yield SummaryBar(id="summary")
        yield HelpPanel(id="help")
        with ContentSwitcher(initial="list", id="views"):
            yield ExecutionTable(id="list")
            yield HistoryView(id="focus")
        yield PromptBar(id="prompt")

    def on_mount(self) -> None:
        self.apply_event(Started())

    def on_key(self, event: Key) -> None:
        if self._handle_key(event.key, event.character):
            event.stop()
            event.prevent_default()

    def action_forward_key(self, key: str) -> None:
        self._handle_key(key, None)

    def _handle_key(self, key: str, character: str | None) -> bool:
        result = translate(self._state, key, character)
        if result is None:
            return False
        self.apply_event(result)
        return True

    def apply_event(self, event) -> None:
        """Reduce one event, re-render, then carry out the effects."""
        self._state, effects = reduce(self._state, event)
        self._render_state()
        for effect in effects:
            self._execute(effect)

    def _execute(self, effect) -> None:
        if isinstance(effect, fx.Notify):
            self.notify(effect.message, severity=effect.severity, timeout=4)
        elif isinstance(effect, fx.Schedule):
            self.set_timer(effect.delay, partial(self.apply_event, effect.event))
        elif isinstance(effect, fx.Exit):
            self.exit(return_code=effect.code)
        else:
            self._run_effect(effect)

    @work(thread=True)
    def _run_effect(self, effect) -> None:
        """Run a backend effect in a background thread."""
        try:
            result = self._runner.execute(effect)
        except Exception as exc:
            logger.exception("Effect %s failed", type(effect).__name__)
            self.call_from_thread(
                self.notify,
                f"Request failed: {exc}",
                severity="error",
                timeout=4,
            )
            return
        if result is not None:
            self.call_from_thread(self.apply_event, result)

    def _render_state(self) -> None:
        """Push the current state into the widgets (UI thread only)."""
        state = self._state
        self.query_one("#summary", SummaryBar).update_summary(
            state.counts, state.query, state.parents_only, state.pagination.page
        )
        self.query_one("#help", HelpPanel).set_class(state.show_help, "visible")
        switcher = self.query_one("#views", ContentSwitcher)
        history = self.query_one("#focus", HistoryView)
        if state.focus:
            switcher.current = "focus"
            history.update_frame(state.top_frame, len(state.focus))
        else:
            switcher.current = "list"
            history.reset()
            self.query_one("#list", ExecutionTable).update_rows(
                state.rows, state.selected, state.cursor
            )
        self.query_one("#prompt", PromptBar).update_prompt(state)
