"""Visibility query building from the active search filters.

Filters combine as AND across fields and OR within a field:

    {WorkflowType: [Foo], WorkflowId: [a, b]}
    -> (WorkflowType = 'Foo') AND (WorkflowId = 'a' OR WorkflowId = 'b')

An empty filter set builds the empty string, which the server treats as
"match everything".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping

from .models import ExecutionStatus

PARENTS_ONLY_CLAUSE = "ParentWorkflowId IS NULL"


class SearchField(str, Enum):
    WORKFLOW_TYPE = "WorkflowType"
    WORKFLOW_ID = "WorkflowId"
    EXECUTION_STATUS = "ExecutionStatus"

    @property
    def prompt(self) -> str:
        return {
            SearchField.WORKFLOW_TYPE: "Search WorkflowType: ",
            SearchField.WORKFLOW_ID: "Search WorkflowId: ",
            SearchField.EXECUTION_STATUS: "Search WorkflowStatus: ",
        }[self]


@dataclass(frozen=True)
class SearchFilters:
    """Accepted values per search field. Immutable; methods return copies."""

    values: Mapping[SearchField, tuple[str, ...]] = field(default_factory=dict)

    def get(self, search_field: SearchField) -> tuple[str, ...]:
        return tuple(self.values.get(search_field, ()))

    def with_value(self, search_field: SearchField, value: str) -> "SearchFilters":
        value = normalize_value(search_field, value)
        current = self.get(search_field)
        if not value or value in current:
            return self
        updated = dict(self.values)
        updated[search_field] = current + (value,)
        return SearchFilters(updated)

    @property
    def is_empty(self) -> bool:
        return not any(self.values.values())

    def items(self) -> list[tuple[SearchField, tuple[str, ...]]]:
        """Non-empty fields in a fixed field order."""
        return [(f, self.get(f)) for f in SearchField if self.get(f)]


def normalize_value(search_field: SearchField, value: str) -> str:
    """Tidy user input for a field: trim, and title-case statuses."""
    value = value.strip()
    if search_field is SearchField.EXECUTION_STATUS:
        # "continued as new" -> "ContinuedAsNew"
        return "".join(word.capitalize() for word in value.replace("_", " ").split())
    return value


def quote_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_query(filters: SearchFilters, parents_only: bool = False) -> str:
    """Build a visibility query from filters and the parents-only view mode."""
    groups: list[str] = []
    if parents_only:
        groups.append(PARENTS_ONLY_CLAUSE)
    for search_field, accepted in filters.items():
        clauses = [f"{search_field.value} = {quote_value(v)}" for v in accepted]
        groups.append(f"({' OR '.join(clauses)})")
    return " AND ".join(groups)


def status_clause(status: ExecutionStatus) -> str:
    return f"ExecutionStatus = {quote_value(status.value)}"


def with_status(query: str, status: ExecutionStatus) -> str:
    """Narrow a query to a single execution status."""
    if not query:
        return status_clause(status)
    return f"{query} AND {status_clause(status)}"


def running_ids_query(workflow_ids: Iterable[str]) -> str:
    ids = ", ".join(quote_value(i) for i in workflow_ids)
    return f"WorkflowId IN ({ids})"


def prefix_query(search_field: SearchField, prefix: str) -> str:
    """Query matching values of a field that start with ``prefix``."""
    escaped = prefix.replace('"', '\\"')
    return f'{search_field.value} BETWEEN "{escaped}" AND "{escaped}~"'


# Status suggestions do not need a server round trip
STATUS_SUGGESTIONS: tuple[str, ...] = tuple(
    s.value for s in ExecutionStatus if s is not ExecutionStatus.UNSPECIFIED
)
