"""Bottom line: confirmation prompt, search entry, or status hint."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from ...confirm import Phase


def prompt_text(state) -> Text:
    """Pick what the bottom line shows, most urgent first."""
    confirmation = state.confirmation
    if confirmation.phase is Phase.AWAITING_CONFIRMATION:
        return Text(confirmation.prompt, style="bold yellow")
    if confirmation.phase is Phase.EXECUTING:
        return Text(f"Working: {confirmation.action.description}…", style="yellow")
    if confirmation.phase is Phase.COMPLETED:
        return Text(confirmation.result_text, style="bold red" if confirmation.failed else "bold green")

    search = state.search
    if search.active:
        text = Text(search.field.prompt, style="bold")
        text.append(search.text)
        text.append("█", style="blink")
        if search.suggestions:
            text.append("   tab: ", style="dim")
            text.append("  ".join(search.suggestions[:5]), style="cyan")
        return text

    if state.focus_pending:
        return Text("Loading workflow history…", style="dim")
    if state.loading:
        return Text("Loading…", style="dim")
    if state.last_error:
        return Text(state.last_error, style="red")
    hint = Text("? help  q quit", style="dim")
    if state.selected:
        hint.append(f"   {len(state.selected)} selected", style="cyan")
    return hint


class PromptBar(Static):
    DEFAULT_CSS = """
    PromptBar {
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    """

    def update_prompt(self, state) -> None:
        self.update(prompt_text(state))
