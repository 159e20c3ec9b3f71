"""
================================================================================
Automation Errors
================================================================================

Exception taxonomy shared by the engine, the test runner and the control API.

Every error carries the HTTP status the control API answers with, so route
handlers can simply let them propagate.

    NotFoundError        -> 404  selector / session / map / query absent
    ActionFailedError    -> 500  located but the operation failed
    WaitTimeoutError     -> 408  wait or navigation budget exceeded
    SecurityDeniedError  -> 403  dev-only feature outside development mode
    UninitializedError   -> 503  observability not started
    StoreUnavailableError-> 500  state bridge unreachable
    InvalidFormatError   -> 400  malformed map, manifest or descriptor
    RateLimitedError     -> 429  per-client request budget exhausted

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AutomationError(Exception):
    """Base class for all browser automation errors."""

    status_code: int = 500
    error: str = "Automation error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON error responses."""
        return {"error": self.error, "message": self.message, **self.details}


class NotFoundError(AutomationError):
    """Raised when a selector, session, file or query does not exist."""
    status_code = 404
    error = "Not found"


class ElementMapNotFoundError(NotFoundError):
    """Raised when no element map file exists for an application."""
    error = "Element map not found"


class StoreMapNotFoundError(NotFoundError):
    """Raised when no store map file exists for an application."""
    error = "Store map not found"


class SessionNotFoundError(NotFoundError):
    """Raised when a screenshot session directory does not exist."""
    error = "Session not found"


class QueryNotFoundError(NotFoundError):
    """Raised when a store query name is not declared in the store map."""
    error = "Query not found"


class ActionFailedError(AutomationError):
    """Raised when an element was located but the operation itself failed."""
    status_code = 500
    error = "Action failed"


class WaitTimeoutError(AutomationError):
    """Raised when a wait or navigation operation times out."""
    status_code = 408
    error = "Timeout"

    def __init__(self, message: str, elapsed: Optional[float] = None, **details: Any):
        super().__init__(message, timeElapsed=elapsed, **details)
        self.elapsed = elapsed


class SecurityDeniedError(AutomationError):
    """Raised when a development-only feature is used outside development mode."""
    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str, hint: Optional[str] = None, **details: Any):
        super().__init__(message, hint=hint, **details)
        self.hint = hint


class UninitializedError(AutomationError):
    """Raised when observability components have not been started."""
    status_code = 503
    error = "Service unavailable"


class StoreUnavailableError(AutomationError):
    """Raised when the in-page state bridge cannot be reached."""
    status_code = 500
    error = "Store unavailable"


class InvalidFormatError(AutomationError):
    """Raised when a map file, manifest or element descriptor is malformed."""
    status_code = 400
    error = "Invalid format"


class RateLimitedError(AutomationError):
    """Raised when a client exceeds the request budget of an endpoint."""
    status_code = 429
    error = "Too many requests"

    def __init__(self, message: str, retry_after: int, **details: Any):
        super().__init__(message, retryAfter=retry_after, **details)
        self.retry_after = retry_after


__all__ = [
    "AutomationError",
    "NotFoundError",
    "ElementMapNotFoundError",
    "StoreMapNotFoundError",
    "SessionNotFoundError",
    "QueryNotFoundError",
    "ActionFailedError",
    "WaitTimeoutError",
    "SecurityDeniedError",
    "UninitializedError",
    "StoreUnavailableError",
    "InvalidFormatError",
    "RateLimitedError",
]
