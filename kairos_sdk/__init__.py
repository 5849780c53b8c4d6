"""
Temporal HTTP SDK for Python

Thin client for the Temporal frontend HTTP API, used by the Kairos dashboard.

Example:
    >>> from kairos_sdk import TemporalSDK
    >>>
    >>> sdk = TemporalSDK(
    ...     server_url='http://localhost:7243',
    ...     namespace='default',
    ... )
    >>>
    >>> # List executions
    >>> page = sdk.workflows.list(query="WorkflowType = 'OrderWorkflow'")
    >>>
    >>> # Inspect one
    >>> description = sdk.workflows.describe('order-123')
"""

from .client import TemporalSDK
from .exceptions import (
    TemporalError,
    TemporalAPIError,
    TemporalNotFoundError,
    TemporalAuthenticationError,
)

__version__ = "0.1.0"
__all__ = [
    "TemporalSDK",
    "TemporalError",
    "TemporalAPIError",
    "TemporalNotFoundError",
    "TemporalAuthenticationError",
]
