"""Tests for visibility query building."""

from kairos.models import ExecutionStatus
from kairos.query import (
    PARENTS_ONLY_CLAUSE,
    STATUS_SUGGESTIONS,
    SearchField,
    SearchFilters,
    build_query,
    normalize_value,
    prefix_query,
    quote_value,
    running_ids_query,
    with_status,
)


class TestBuildQuery:
    """Tests for build_query()."""

    def test_empty_filters_build_empty_query(self):
        assert build_query(SearchFilters()) == ""

    def test_single_value(self):
        filters = SearchFilters().with_value(SearchField.WORKFLOW_TYPE, "Foo")
        assert build_query(filters) == "(WorkflowType = 'Foo')"

    def test_or_within_field_and_across_fields(self):
        filters = (
            SearchFilters()
            .with_value(SearchField.WORKFLOW_TYPE, "Foo")
            .with_value(SearchField.WORKFLOW_ID, "a")
            .with_value(SearchField.WORKFLOW_ID, "b")
        )
        assert set(build_query(filters).split(" AND ")) == {
            "(WorkflowType = 'Foo')",
            "(WorkflowId = 'a' OR WorkflowId = 'b')",
        }

    def test_every_field_gets_its_own_group(self):
        filters = (
            SearchFilters()
            .with_value(SearchField.EXECUTION_STATUS, "Running")
            .with_value(SearchField.WORKFLOW_TYPE, "Foo")
        )
        assert set(build_query(filters).split(" AND ")) == {
            "(WorkflowType = 'Foo')",
            "(ExecutionStatus = 'Running')",
        }

    def test_parents_only_alone(self):
        assert build_query(SearchFilters(), parents_only=True) == PARENTS_ONLY_CLAUSE

    def test_parents_only_comes_first(self):
        filters = SearchFilters().with_value(SearchField.WORKFLOW_ID, "a")
        assert build_query(filters, parents_only=True) == (
            "ParentWorkflowId IS NULL AND (WorkflowId = 'a')"
        )

    def test_values_are_escaped(self):
        filters = SearchFilters().with_value(SearchField.WORKFLOW_ID, "it's")
        assert build_query(filters) == "(WorkflowId = 'it\\'s')"


class TestSearchFilters:
    """Tests for SearchFilters."""

    def test_duplicate_value_is_ignored(self):
        filters = SearchFilters().with_value(SearchField.WORKFLOW_ID, "a")
        assert filters.with_value(SearchField.WORKFLOW_ID, "a") is filters

    def test_blank_value_is_ignored(self):
        filters = SearchFilters()
        assert filters.with_value(SearchField.WORKFLOW_ID, "   ") is filters

    def test_with_value_does_not_mutate(self):
        filters = SearchFilters()
        filters.with_value(SearchField.WORKFLOW_ID, "a")
        assert filters.is_empty

    def test_status_values_are_normalised(self):
        filters = SearchFilters().with_value(SearchField.EXECUTION_STATUS, "continued as new")
        assert filters.get(SearchField.EXECUTION_STATUS) == ("ContinuedAsNew",)


class TestHelpers:
    def test_normalize_strips_whitespace(self):
        assert normalize_value(SearchField.WORKFLOW_ID, "  abc ") == "abc"

    def test_normalize_status_underscores(self):
        assert normalize_value(SearchField.EXECUTION_STATUS, "timed_out") == "TimedOut"

    def test_quote_value_escapes_backslash(self):
        assert quote_value("a\\b") == "'a\\\\b'"

    def test_with_status_on_empty_query(self):
        assert with_status("", ExecutionStatus.FAILED) == "ExecutionStatus = 'Failed'"

    def test_with_status_appends(self):
        query = "(WorkflowType = 'Foo')"
        assert with_status(query, ExecutionStatus.RUNNING) == (
            "(WorkflowType = 'Foo') AND ExecutionStatus = 'Running'"
        )

    def test_running_ids_query(self):
        assert running_ids_query(["a", "b"]) == "WorkflowId IN ('a', 'b')"

    def test_prefix_query(self):
        assert prefix_query(SearchField.WORKFLOW_TYPE, "Ord") == (
            'WorkflowType BETWEEN "Ord" AND "Ord~"'
        )

    def test_status_suggestions_exclude_unspecified(self):
        assert "Unspecified" not in STATUS_SUGGESTIONS
        assert "Running" in STATUS_SUGGESTIONS

    def test_prompts(self):
        assert SearchField.WORKFLOW_TYPE.prompt == "Search WorkflowType: "
        assert SearchField.EXECUTION_STATUS.prompt == "Search WorkflowStatus: "
