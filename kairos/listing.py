"""Row collection for the execution list, and its two refresh paths.

Full refetch replaces the rows outright. Background sync only ever merges:
it overwrites fields on rows it can match by (workflow ID, run ID) and leaves
every other row, and the row order, alone. Merging the same result twice
gives the same rows as merging it once.

Rows are keyed by run, not by workflow ID alone: a reset leaves the closed
run and the new running run side by side under the same workflow ID.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from .models import ExecutionSnapshot, PendingActivityInfo

# Attempt counts above this are flagged in the list
ATTEMPT_THRESHOLD = 3

RowIdentity = tuple[str, str]


@dataclass(frozen=True)
class ListRow:
    execution: ExecutionSnapshot
    attempts: int = 0

    @property
    def identity(self) -> RowIdentity:
        return self.execution.identity

    @property
    def attempts_display(self) -> str:
        return str(self.attempts) if self.attempts else "--"

    @property
    def over_threshold(self) -> bool:
        return self.attempts > ATTEMPT_THRESHOLD


def rows_from(executions: Iterable[ExecutionSnapshot]) -> tuple[ListRow, ...]:
    return tuple(ListRow(execution=e) for e in executions)


def running_rows(rows: Iterable[ListRow]) -> list[ListRow]:
    """Rows whose execution has not reached a terminal status."""
    return [row for row in rows if row.execution.is_running]


def merge_statuses(
    rows: tuple[ListRow, ...],
    updates: Iterable[ExecutionSnapshot],
) -> tuple[ListRow, ...]:
    """Merge fresh status and close time into rows of the same run."""
    by_id = {u.identity: u for u in updates}
    if not by_id:
        return rows
    merged = []
    for row in rows:
        update = by_id.get(row.identity)
        if update is None:
            merged.append(row)
            continue
        execution = replace(
            row.execution,
            status=update.status,
            close_time=update.close_time,
        )
        merged.append(replace(row, execution=execution))
    return tuple(merged)


def merge_attempts(
    rows: tuple[ListRow, ...],
    attempts: Mapping[RowIdentity, int],
) -> tuple[ListRow, ...]:
    """Overwrite attempt counts on rows that are still running."""
    merged = []
    for row in rows:
        if row.identity in attempts and row.execution.is_running:
            merged.append(replace(row, attempts=attempts[row.identity]))
        else:
            merged.append(row)
    return tuple(merged)


def resolve_attempts(pending: Iterable[PendingActivityInfo]) -> int:
    """Highest retry attempt among an execution's pending activities."""
    return max((p.attempt for p in pending), default=0)


class PageTokenMissing(LookupError):
    """A page was requested before the page preceding it was fetched."""

    def __init__(self, page: int) -> None:
        super().__init__(f"No page token for page {page + 1}; fetch page {page} first")
        self.page = page


@dataclass(frozen=True)
class Pagination:
    """Current page plus the next-page tokens seen so far.

    ``tokens[n]`` is the token that fetches page ``n``; page 0 needs none.
    An empty token from the server means the previous page was the last.
    """

    page: int = 0
    tokens: Mapping[int, str] = field(default_factory=dict)

    def token_for(self, page: int) -> str | None:
        if page < 0:
            raise PageTokenMissing(page)
        if page == 0:
            return None
        token = self.tokens.get(page)
        if not token:
            raise PageTokenMissing(page - 1)
        return token

    def has_page(self, page: int) -> bool:
        return page == 0 or bool(self.tokens.get(page))

    def recorded(self, page: int, next_token: str | None) -> "Pagination":
        """Return a copy on ``page`` remembering the token for ``page + 1``."""
        tokens = dict(self.tokens)
        if next_token:
            tokens[page + 1] = next_token
        else:
            tokens.pop(page + 1, None)
        return Pagination(page=page, tokens=tokens)
