"""
Temporal HTTP SDK exceptions

Error responses from the HTTP API carry a google.rpc.Status body:
``{"code": 5, "message": "...", "details": [...]}``. The gRPC ``code`` and
``details`` are kept next to the HTTP status, since several codes share one
status (a reset of a closed run and a bad query are both 400).
"""

from typing import Any

# google.rpc.Code values the dashboard cares about
GRPC_CODES = {
    3: "INVALID_ARGUMENT",
    4: "DEADLINE_EXCEEDED",
    5: "NOT_FOUND",
    6: "ALREADY_EXISTS",
    7: "PERMISSION_DENIED",
    8: "RESOURCE_EXHAUSTED",
    9: "FAILED_PRECONDITION",
    14: "UNAVAILABLE",
    16: "UNAUTHENTICATED",
}


class TemporalError(Exception):
    """Base exception for all Temporal SDK errors"""


class TemporalAPIError(TemporalError):
    """The server answered with an error status"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details or []

    @property
    def code_name(self) -> str | None:
        """Symbolic gRPC code, e.g. ``NOT_FOUND``"""
        if self.code is None:
            return None
        return GRPC_CODES.get(self.code, str(self.code))

    @property
    def detail_types(self) -> list[str]:
        """Short type names of the attached details, e.g. ``NotFoundFailure``"""
        return [d.get("@type", "").rsplit(".", 1)[-1] for d in self.details if isinstance(d, dict)]


class TemporalNotFoundError(TemporalAPIError):
    """The workflow execution (or namespace) does not exist"""

    def __init__(self, message: str, code: int | None = 5, details: list | None = None):
        super().__init__(message, status_code=404, code=code, details=details)


class TemporalAuthenticationError(TemporalAPIError):
    """The API key or client certificate was rejected (401/403)"""

    def __init__(
        self,
        message: str,
        status_code: int = 401,
        code: int | None = None,
        details: list | None = None,
    ):
        super().__init__(message, status_code=status_code, code=code, details=details)
