"""Key help overlay."""

from rich.table import Table
from textual.widgets import Static

from ...keymap import HELP


def help_table() -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    for keys, description in HELP:
        table.add_row(keys, description)
    return table


class HelpPanel(Static):
    DEFAULT_CSS = """
    HelpPanel {
        display: none;
        height: auto;
        border: round $accent;
        padding: 0 1;
    }
    HelpPanel.visible {
        display: block;
    }
    """

    def on_mount(self) -> None:
        self.update(help_table())
