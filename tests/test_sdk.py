"""Tests for the Temporal HTTP SDK client."""

from unittest.mock import MagicMock

import pytest
import requests

from kairos_sdk import (
    TemporalAPIError,
    TemporalAuthenticationError,
    TemporalNotFoundError,
    TemporalSDK,
)


def _response(status=200, body=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body if body is not None else {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status} error", response=response
        )
    return response


@pytest.fixture
def sdk():
    client = TemporalSDK(server_url="http://localhost:7243/", namespace="default")
    client.session = MagicMock()
    client.session.request.return_value = _response(body={})
    return client


def _last_request(sdk):
    args, kwargs = sdk.session.request.call_args
    return args[0], args[1], kwargs


class TestSetup:
    def test_api_key_headers(self):
        client = TemporalSDK(server_url="https://x.tmprl.cloud", namespace="ns.acct", api_key="k")
        assert client.session.headers["Authorization"] == "Bearer k"
        assert client.session.headers["temporal-namespace"] == "ns.acct"

    def test_client_cert(self):
        client = TemporalSDK(server_url="https://x", client_cert=("c.pem", "c.key"))
        assert client.session.cert == ("c.pem", "c.key")

    def test_trailing_slash_stripped(self, sdk):
        assert sdk.server_url == "http://localhost:7243"


class TestWorkflowsAPI:
    """Tests for request building."""

    def test_list(self, sdk):
        sdk.session.request.return_value = _response(body={"executions": [], "nextPageToken": "t"})
        page = sdk.workflows.list("WorkflowType = 'X'", page_size=10, next_page_token="abc")
        method, url, kwargs = _last_request(sdk)
        assert method == "GET"
        assert url == "http://localhost:7243/api/v1/namespaces/default/workflows"
        assert kwargs["params"] == {"pageSize": 10, "query": "WorkflowType = 'X'", "nextPageToken": "abc"}
        assert page["nextPageToken"] == "t"

    def test_list_without_query(self, sdk):
        sdk.workflows.list()
        _, _, kwargs = _last_request(sdk)
        assert kwargs["params"] == {"pageSize": 40}

    def test_count_parses_int64_string(self, sdk):
        sdk.session.request.return_value = _response(body={"count": "1234"})
        assert sdk.workflows.count("q") == 1234
        _, url, _ = _last_request(sdk)
        assert url.endswith("/workflow-count")

    def test_workflow_id_is_quoted(self, sdk):
        sdk.workflows.describe("orders/2024 #1", "r1")
        _, url, kwargs = _last_request(sdk)
        assert url.endswith("/workflows/orders%2F2024%20%231")
        assert kwargs["params"] == {"execution.runId": "r1"}

    def test_history_page(self, sdk):
        sdk.workflows.history_page("a", "r1", next_page_token="n")
        _, url, kwargs = _last_request(sdk)
        assert url.endswith("/workflows/a/history")
        assert kwargs["params"] == {"execution.runId": "r1", "nextPageToken": "n"}

    def test_terminate(self, sdk):
        sdk.workflows.terminate("a", "r1", "Terminated from kairos")
        method, url, kwargs = _last_request(sdk)
        assert method == "POST"
        assert url.endswith("/workflows/a/terminate")
        assert kwargs["json"] == {
            "workflowExecution": {"workflowId": "a", "runId": "r1"},
            "reason": "Terminated from kairos",
            "identity": "kairos",
        }

    def test_reset(self, sdk):
        sdk.workflows.reset("a", "r1", 4, "Restarted from kairos")
        _, url, kwargs = _last_request(sdk)
        assert url.endswith("/workflows/a/reset")
        body = kwargs["json"]
        assert body["workflowTaskFinishEventId"] == "4"
        assert body["requestId"]

    def test_system_info(self, sdk):
        sdk.system.info()
        _, url, _ = _last_request(sdk)
        assert url == "http://localhost:7243/api/v1/system-info"


class TestErrors:
    """Tests for error mapping."""

    def test_not_found(self, sdk):
        sdk.session.request.return_value = _response(404, {"message": "workflow not found"})
        with pytest.raises(TemporalNotFoundError) as exc_info:
            sdk.workflows.describe("a")
        assert str(exc_info.value) == "workflow not found"
        assert exc_info.value.status_code == 404

    def test_forbidden(self, sdk):
        sdk.session.request.return_value = _response(403, {"message": "denied"})
        with pytest.raises(TemporalAuthenticationError) as exc_info:
            sdk.workflows.list()
        assert exc_info.value.status_code == 403

    def test_other_http_error(self, sdk):
        sdk.session.request.return_value = _response(400, {"message": "invalid query"})
        with pytest.raises(TemporalAPIError) as exc_info:
            sdk.workflows.count("bad")
        assert exc_info.value.status_code == 400

    def test_grpc_status_body_is_kept(self, sdk):
        body = {
            "code": 9,
            "message": "workflow execution already completed",
            "details": [{"@type": "type.googleapis.com/temporal.api.errordetails.v1.WorkflowNotReadyFailure"}],
        }
        sdk.session.request.return_value = _response(400, body)
        with pytest.raises(TemporalAPIError) as exc_info:
            sdk.workflows.terminate("a", "r1", "x")
        error = exc_info.value
        assert error.status_code == 400
        assert error.code == 9
        assert error.code_name == "FAILED_PRECONDITION"
        assert error.detail_types == ["WorkflowNotReadyFailure"]

    def test_not_found_by_grpc_code(self, sdk):
        sdk.session.request.return_value = _response(400, {"code": 5, "message": "namespace missing"})
        with pytest.raises(TemporalNotFoundError) as exc_info:
            sdk.workflows.list()
        assert exc_info.value.code_name == "NOT_FOUND"

    def test_unauthenticated_by_grpc_code(self, sdk):
        sdk.session.request.return_value = _response(500, {"code": 16, "message": "bad key"})
        with pytest.raises(TemporalAuthenticationError) as exc_info:
            sdk.workflows.list()
        assert exc_info.value.status_code == 500

    def test_non_json_error_body(self, sdk):
        response = _response(502)
        response.json.side_effect = ValueError("not json")
        sdk.session.request.return_value = response
        with pytest.raises(TemporalAPIError) as exc_info:
            sdk.workflows.list()
        assert exc_info.value.code is None
        assert exc_info.value.details == []
        assert str(exc_info.value) == "502 error"

    def test_timeout(self, sdk):
        sdk.session.request.side_effect = requests.Timeout()
        with pytest.raises(TimeoutError):
            sdk.workflows.list()

    def test_no_content(self, sdk):
        sdk.session.request.return_value = _response(204)
        assert sdk.workflows.terminate("a", None, "x") is None
