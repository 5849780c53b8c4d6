"""Focus view: one execution's compacted history.

Left pane shows the content blocks of the record under the cursor, right pane
lists the records, newest first.
"""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widget import Widget
from textual.widgets import DataTable, Label, Static

from ...focus import FocusFrame
from ...history import FAILURE, INPUT, LAST_ERROR, OUTPUT, CompactedRecord
from ..utils import relative_time
from .status_badge import badge_for

BLOCK_COLORS = {
    INPUT: "#5f87ff",
    OUTPUT: "#00ff00",
    LAST_ERROR: "#ff8800",
    FAILURE: "#ff0000",
}


def frame_title(frame: FocusFrame, depth: int) -> str:
    execution = frame.execution
    _, icon, _ = badge_for(execution.status)
    child = "👶 " if execution.is_child else ""
    crumbs = " › " * (depth - 1) if depth > 1 else ""
    started = relative_time(execution.start_time)
    suffix = f"  (started {started})" if started else ""
    return f"{crumbs}{child}{icon} Workflow ID: {frame.workflow_id}{suffix}"


def record_details(record: CompactedRecord | None):
    """Renderable for a record's content blocks."""
    if record is None:
        return Text("No history", style="dim")
    if not record.content:
        return Text(", ".join(record.event_types), style="dim")
    return Group(*[
        Panel(
            Text(block.text),
            title=block.kind,
            title_align="left",
            border_style=BLOCK_COLORS.get(block.kind, "white"),
        )
        for block in record.content
    ])


class HistoryView(Widget):
    """Compacted history of the focused execution."""

    can_focus = False

    DEFAULT_CSS = """
    HistoryView {
        height: 1fr;
    }
    HistoryView #focus-title {
        height: 1;
        padding: 0 1;
        text-style: bold;
    }
    HistoryView #focus-body {
        height: 1fr;
    }
    HistoryView #focus-detail {
        width: 1fr;
    }
    HistoryView #focus-records {
        width: 1fr;
    }
    """

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._rendered: FocusFrame | None = None

    def compose(self) -> ComposeResult:
        yield Label("", id="focus-title")
        with Horizontal(id="focus-body"):
            with VerticalScroll(id="focus-detail"):
                yield Static("", id="focus-content")
            records = DataTable(id="focus-records", cursor_type="row", zebra_stripes=True)
            records.can_focus = False
            yield records

    def update_frame(self, frame: FocusFrame | None, depth: int) -> None:
        if frame is None or frame == self._rendered:
            return
        table = self.query_one("#focus-records", DataTable)
        if not table.columns:
            table.add_columns("", "Event", "Type", "Details")
        if self._rendered is None or frame.records != self._rendered.records:
            table.clear()
            for record in frame.ordered:
                table.add_row(record.icon, str(record.key), record.category, record.label)
        self._rendered = frame
        self.query_one("#focus-title", Label).update(frame_title(frame, depth))
        self.query_one("#focus-content", Static).update(record_details(frame.current))
        if frame.records:
            table.move_cursor(row=frame.cursor)

    def reset(self) -> None:
        self._rendered = None
