"""Header strip: per-status counts and the active query."""

from __future__ import annotations

from typing import Mapping

from rich.text import Text
from textual.widgets import Static

from ...models import HEADLINE_STATUSES, ExecutionStatus
from ..utils import format_number
from .status_badge import badge_for


def counts_text(counts: Mapping[ExecutionStatus, int]) -> Text:
    text = Text()
    for status in HEADLINE_STATUSES:
        name, icon, color = badge_for(status)
        count = counts.get(status)
        shown = format_number(count) if count is not None else "…"
        text.append(f" {icon} {name}: {shown} ", style=f"bold {color}")
        text.append("│", style="dim")
    return text


def query_text(query: str, parents_only: bool, page: int) -> Text:
    text = Text(query or "All workflows", style="italic")
    if parents_only:
        text.append("  [parents only]", style="cyan")
    text.append(f"  page {page + 1}", style="dim")
    return text


class SummaryBar(Static):
    DEFAULT_CSS = """
    SummaryBar {
        height: 2;
        padding: 0 1;
        background: $panel;
    }
    """

    def update_summary(
        self,
        counts: Mapping[ExecutionStatus, int],
        query: str,
        parents_only: bool,
        page: int,
    ) -> None:
        text = counts_text(counts)
        text.append("\n")
        text.append_text(query_text(query, parents_only, page))
        self.update(text)
