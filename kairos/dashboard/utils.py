"""Shared formatting helpers for the dashboard package."""

from __future__ import annotations

from datetime import datetime, timezone


def format_number(number: int) -> str:
    """Compact a count for the header: 1234 -> '1.2K', 2500000 -> '2.5M'."""
    if number > 1_000_000:
        return f"{number / 1_000_000:.1f}M"
    if number > 1_000:
        return f"{number / 1_000:.1f}K"
    return str(number)


def format_timestamp(dt: datetime | None) -> str:
    """Local wall-clock time, or '--' when the timestamp is unset."""
    if dt is None:
        return "--"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def relative_time(dt: datetime | None, now: datetime | None = None) -> str:
    """Describe how long ago ``dt`` was, like '5 min ago' or '3 d ago'."""
    if dt is None:
        return ""
    now = now or datetime.now(timezone.utc)
    secs = (now - dt).total_seconds()
    if secs < 60:
        return f"{max(int(secs), 0)} sec ago"
    if secs < 3600:
        return f"{int(secs // 60)} min ago"
    hours = secs / 3600
    if hours < 24:
        return f"{int(hours)} h ago"
    if hours < 24 * 30:
        return f"{int(hours // 24)} d ago"
    if hours < 24 * 30 * 12:
        return f"{int(hours // (24 * 30))} mon ago"
    return f"{int(hours // (24 * 30 * 12))} years ago"


def truncate(text: str, width: int) -> str:
    if width <= 0 or len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."
