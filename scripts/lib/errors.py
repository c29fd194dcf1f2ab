"""
Board Insights Hub — Errors
=============================

Every failure the hub raises on purpose is a HubError carrying a stable
``code``, a plain ``message``, structured ``details`` and the HTTP status
the API answers with.

    HubError                                500
    ├── APIError            (Monday.com)    502
    │   ├── APITimeoutError                 502
    │   ├── APIRateLimitError               503
    │   ├── APIAuthError                    502
    │   └── CircuitOpenError                503
    ├── DataError                           500
    │   ├── ConfigError                     503
    │   ├── SchemaValidationError           500
    │   ├── DataFetchError                  500
    │   └── BoardNotFoundError              404
    └── PipelineError                       500
        └── AnalysisFailedError             502
"""
from typing import Any, Dict


class HubError(Exception):
    """Base exception for all Board Insights Hub errors."""

    http_status = 500
    # details keys that are safe to echo back to API clients
    public_details = ()

    def __init__(self, message: str, code: str = "UNKNOWN", details: dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        body = {"code": self.code, "message": self.message}
        for key in self.public_details:
            if self.details.get(key) is not None:
                body[key] = self.details[key]
        return body


# --- Monday.com API ---

class APIError(HubError):
    """The Monday.com API failed or answered with an error."""

    http_status = 502

    def __init__(self, message: str, code: str = "API_ERROR",
                 status_code: int = None, url: str = None, **kwargs):
        self.status_code = status_code
        self.url = url
        super().__init__(
            message, code=code,
            details={"status_code": status_code, "url": url, **kwargs},
        )


class APITimeoutError(APIError):
    def __init__(self, url: str, timeout: float):
        super().__init__(
            f"Monday.com did not answer within {timeout}s",
            code="API_TIMEOUT", url=url, timeout=timeout,
        )


class APIRateLimitError(APIError):
    """Monday.com answered 429; complexity or per-minute quota used up."""

    http_status = 503
    public_details = ("retry_after",)

    def __init__(self, url: str, retry_after: int = None):
        msg = "Monday.com rate limit reached"
        if retry_after:
            msg += f", retry after {retry_after}s"
        super().__init__(msg, code="API_RATE_LIMIT", url=url, retry_after=retry_after)


class APIAuthError(APIError):
    """The API token was rejected (401/403)."""

    def __init__(self, url: str, status_code: int = 401):
        super().__init__(
            "Monday.com rejected the API token",
            code="API_AUTH_FAILED", url=url, status_code=status_code,
        )


class CircuitOpenError(APIError):
    """Calls to the service are suspended after repeated failures."""

    http_status = 503
    public_details = ("service", "retry_after")

    def __init__(self, service: str, failures: int, reset_time: float):
        super().__init__(
            f"Calls to {service} suspended after {failures} failures, "
            f"retrying in {reset_time:.0f}s",
            code="CIRCUIT_OPEN", service=service, retry_after=round(reset_time),
        )


# --- Board data ---

class DataError(HubError):
    """Board data could not be loaded or interpreted."""


class ConfigError(DataError):
    """A required setting (usually MONDAY_API_KEY) is missing or invalid."""

    http_status = 503
    public_details = ("setting",)

    def __init__(self, message: str, setting: str = None):
        super().__init__(message, code="CONFIG_ERROR", details={"setting": setting})


class SchemaValidationError(DataError):
    """A stored snapshot does not have the expected board shape."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, code="SCHEMA_INVALID", details={"field": field})


class DataFetchError(DataError):
    """A stored snapshot could not be read."""

    def __init__(self, message: str, source: str = None):
        super().__init__(message, code="DATA_FETCH_FAILED", details={"source": source})


class BoardNotFoundError(DataError):
    """Board does not exist, is not visible to the token, or came back empty."""

    http_status = 404
    public_details = ("board_id",)

    def __init__(self, board_id: str, reason: str = "not found"):
        self.board_id = str(board_id)
        super().__init__(
            f"Board {board_id} {reason}",
            code="BOARD_NOT_FOUND", details={"board_id": self.board_id},
        )


# --- Analysis ---

class PipelineError(HubError):
    """The analysis pipeline could not produce a result."""


class AnalysisFailedError(PipelineError):
    """An analysis run failed for a reason other than a missing board."""

    http_status = 502
    public_details = ("board_id", "cause")

    def __init__(self, board_id: str, cause: Exception = None):
        self.board_id = str(board_id)
        self.cause = cause
        msg = f"Analysis of board {board_id} failed"
        if cause:
            msg += f": {cause}"
        super().__init__(
            msg, code="ANALYSIS_FAILED",
            details={
                "board_id": self.board_id,
                "cause": type(cause).__name__ if cause else None,
            },
        )
