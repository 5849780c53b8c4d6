"""
Temporal HTTP SDK Client
API client for the Temporal frontend HTTP API (/api/v1)
"""

import uuid
from typing import Any, Dict, Optional, Tuple

import requests
from requests.utils import quote

from .exceptions import (
    TemporalAPIError,
    TemporalAuthenticationError,
    TemporalNotFoundError,
)


def _path_segment(value: str) -> str:
    """Quote a workflow ID for use as a single URL path segment"""
    return quote(value, safe='')


class WorkflowsAPI:
    """Workflow execution endpoints"""

    def __init__(self, client: 'TemporalSDK'):
        self.client = client

    def _base(self) -> str:
        return f'/api/v1/namespaces/{_path_segment(self.client.namespace)}'

    def list(
        self,
        query: str = '',
        page_size: int = 40,
        next_page_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List workflow executions matching a visibility query

        Args:
            query: Visibility query (empty string matches everything)
            page_size: Maximum executions to return
            next_page_token: Token from a previous response, for the next page

        Returns:
            Dict with 'executions' (list) and 'nextPageToken' keys
        """
        params: Dict[str, Any] = {'pageSize': page_size}
        if query:
            params['query'] = query
        if next_page_token:
            params['nextPageToken'] = next_page_token

        response = self.client._request('GET', f'{self._base()}/workflows', params=params)
        return response if isinstance(response, dict) else {}

    def count(self, query: str = '') -> int:
        """Count workflow executions matching a visibility query"""
        params = {'query': query} if query else None
        response = self.client._request('GET', f'{self._base()}/workflow-count', params=params)
        if not isinstance(response, dict):
            return 0
        # int64 fields arrive as JSON strings
        return int(response.get('count') or 0)

    def describe(self, workflow_id: str, run_id: Optional[str] = None) -> Dict[str, Any]:
        """Describe a single workflow execution

        Returns:
            Dict with 'workflowExecutionInfo' and 'pendingActivities' keys
        """
        params = {'execution.runId': run_id} if run_id else None
        return self.client._request(
            'GET',
            f'{self._base()}/workflows/{_path_segment(workflow_id)}',
            params=params,
        )

    def history_page(
        self,
        workflow_id: str,
        run_id: Optional[str] = None,
        next_page_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch one page of execution history

        Returns:
            Dict with 'history' ({'events': [...]}) and 'nextPageToken' keys
        """
        params: Dict[str, Any] = {}
        if run_id:
            params['execution.runId'] = run_id
        if next_page_token:
            params['nextPageToken'] = next_page_token
        return self.client._request(
            'GET',
            f'{self._base()}/workflows/{_path_segment(workflow_id)}/history',
            params=params,
        )

    def terminate(self, workflow_id: str, run_id: Optional[str], reason: str) -> Dict[str, Any]:
        """Terminate a running workflow execution

        Args:
            workflow_id: Workflow ID
            run_id: Run ID (latest run when None)
            reason: Free-text reason recorded in history
        """
        data = {
            'workflowExecution': {'workflowId': workflow_id, 'runId': run_id or ''},
            'reason': reason,
            'identity': self.client.identity,
        }
        return self.client._request(
            'POST',
            f'{self._base()}/workflows/{_path_segment(workflow_id)}/terminate',
            json=data,
        )

    def reset(
        self,
        workflow_id: str,
        run_id: Optional[str],
        workflow_task_finish_event_id: int,
        reason: str,
    ) -> Dict[str, Any]:
        """Reset a workflow execution to a workflow task event

        Args:
            workflow_id: Workflow ID
            run_id: Run ID to reset from
            workflow_task_finish_event_id: ID of the workflow task event to
                reset to (history after it is discarded and replayed)
            reason: Free-text reason recorded in history

        Returns:
            Dict with the new 'runId'
        """
        data = {
            'workflowExecution': {'workflowId': workflow_id, 'runId': run_id or ''},
            'reason': reason,
            'workflowTaskFinishEventId': str(workflow_task_finish_event_id),
            'requestId': str(uuid.uuid4()),
            'identity': self.client.identity,
        }
        return self.client._request(
            'POST',
            f'{self._base()}/workflows/{_path_segment(workflow_id)}/reset',
            json=data,
        )


class SystemAPI:
    """Cluster-level endpoints"""

    def __init__(self, client: 'TemporalSDK'):
        self.client = client

    def info(self) -> Dict[str, Any]:
        """Get server version and capabilities"""
        return self.client._request('GET', '/api/v1/system-info')


class TemporalSDK:
    """
    Temporal HTTP API client

    Usage:
        sdk = TemporalSDK(
            server_url='http://localhost:7243',
            namespace='default',
        )

        # List running executions
        page = sdk.workflows.list(query="ExecutionStatus = 'Running'")
    """

    def __init__(
        self,
        server_url: str,
        namespace: str = 'default',
        api_key: Optional[str] = None,
        client_cert: Optional[Tuple[str, str]] = None,
        timeout: int = 30,
        identity: str = 'kairos',
    ):
        self.server_url = server_url.rstrip('/')
        self.namespace = namespace
        self.api_key = api_key
        self.timeout = timeout
        self.identity = identity
        self.session = requests.Session()

        if api_key:
            self.session.headers['Authorization'] = f'Bearer {api_key}'
            self.session.headers['temporal-namespace'] = namespace
        if client_cert:
            self.session.cert = client_cert

        # Initialize API endpoints
        self.workflows = WorkflowsAPI(self)
        self.system = SystemAPI(self)

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json: Optional[Dict] = None
    ) -> Any:
        """Make HTTP request to API"""
        url = f'{self.server_url}{path}'

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=self.timeout
            )
            response.raise_for_status()

            if response.status_code == 204:
                return None

            try:
                return response.json()
            except ValueError:
                return response.text

        except requests.Timeout:
            raise TimeoutError(f'Request to {url} timed out after {self.timeout}s')
        except requests.HTTPError as e:
            raise _api_error(e) from e

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _api_error(error: requests.HTTPError) -> TemporalAPIError:
    """Map an HTTP error response onto the SDK exception hierarchy"""
    response = error.response
    status = response.status_code if response is not None else None
    message = str(error)
    code = None
    details = None
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get('message') or message
            code = body.get('code')
            details = body.get('details')

    if status == 404 or code == 5:
        return TemporalNotFoundError(message, code=code, details=details)
    if status in (401, 403) or code in (7, 16):
        return TemporalAuthenticationError(
            message, status_code=status or 401, code=code, details=details
        )
    return TemporalAPIError(message, status_code=status, code=code, details=details)
