"""Execution list table."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import DataTable

from ...listing import ListRow
from ..utils import format_timestamp
from .status_badge import status_text

COLUMNS = ("", "Status", "Type", "Id", "Attempts", "Start Time", "Close Time")


def row_cells(row: ListRow, selected: bool) -> tuple:
    execution = row.execution
    attempts = Text(row.attempts_display, style="bold red" if row.over_threshold else "")
    close = "--" if execution.is_running else format_timestamp(execution.close_time)
    return (
        "●" if selected else " ",
        status_text(execution.status),
        execution.workflow_type,
        execution.workflow_id,
        attempts,
        format_timestamp(execution.start_time),
        close,
    )


class ExecutionTable(DataTable):
    """The root list. Keys are handled by the app, so it never takes focus."""

    can_focus = False

    DEFAULT_CSS = """
    ExecutionTable {
        height: 1fr;
    }
    """

    def __init__(self, **kwargs: object) -> None:
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)
        self._rendered: tuple | None = None

    def update_rows(self, rows: tuple[ListRow, ...], selected: frozenset[tuple[str, str]], cursor: int) -> None:
        """Repopulate when rows or selection change, then place the cursor."""
        if not self.columns:
            self.add_columns(*COLUMNS)
        key = (rows, selected)
        if key != self._rendered:
            self._rendered = key
            self.clear()
            for row in rows:
                # Several runs can share a workflow ID, so rows are not keyed
                self.add_row(*row_cells(row, row.identity in selected))
        if rows:
            self.move_cursor(row=cursor)
