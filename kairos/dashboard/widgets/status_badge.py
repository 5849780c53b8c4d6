"""Status icons and colours for execution statuses."""

from rich.text import Text

from ...models import ExecutionStatus

# status -> (display name, icon, colour)
STATUS_STYLES = {
    ExecutionStatus.COMPLETED: ("Completed", "✅", "#00ff00"),
    ExecutionStatus.FAILED: ("Failed", "❌", "#ff0000"),
    ExecutionStatus.CANCELED: ("Canceled", "✋", "#808080"),
    ExecutionStatus.RUNNING: ("Running", "🏃", "#0000ff"),
    ExecutionStatus.TERMINATED: ("Terminated", "💀", "#ffff00"),
    ExecutionStatus.CONTINUED_AS_NEW: ("Cont. New", "🔄", "#800080"),
    ExecutionStatus.TIMED_OUT: ("Timed Out", "⌛", "#ff8800"),
}


def badge_for(status: ExecutionStatus) -> tuple[str, str, str]:
    """Return (display_name, icon, colour) for a status."""
    return STATUS_STYLES.get(status, (status.value, "?", "#ffffff"))


def status_text(status: ExecutionStatus) -> Text:
    """Icon and name, coloured for the status."""
    name, icon, color = badge_for(status)
    return Text(f"{icon} {name}", style=color)
