"""Custom exceptions for ServiceRec.

Defines specific exception types for better error handling and reporting.
Structural problems (bad matrices, bad parameters) abort a run; per-client
data sparsity is not an error and is reported through reason tags instead.
"""

from typing import Any, Dict, Optional


class ServiceRecException(Exception):
    """Base exception for ServiceRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ValidationError(ServiceRecException):
    """Raised when a matrix violates its structural invariants."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            details=details,
        )


class ParameterError(ServiceRecException):
    """Raised when a tuning parameter is outside its allowed range."""

    def __init__(self, name: str, value: Any, constraint: str):
        message = f"Invalid {name}={value!r}: {constraint}"
        super().__init__(
            message=message,
            status_code=400,
            details={"parameter": name, "value": value, "constraint": constraint},
        )


class ClientNotFoundError(ServiceRecException):
    """Raised when a client is not present in the preference matrix."""

    def __init__(self, client_id: str, details: Optional[Dict[str, Any]] = None):
        message = (
            f"Client '{client_id}' not found in preference matrix. "
            "Cannot generate personalized recommendations."
        )
        super().__init__(
            message=message,
            status_code=404,
            details=details or {"client_id": client_id},
        )


def require_positive_int(name: str, value: Any) -> int:
    """Check that a parameter is a positive integer.

    Raises:
        ParameterError: If value is not an int or is <= 0.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ParameterError(name, value, "must be a positive integer")
    return value


def require_n_jobs(value: Any) -> int:
    """Check a joblib-style worker count (-1 means all cores, 0 is invalid)."""
    if isinstance(value, bool) or not isinstance(value, int) or value == 0:
        raise ParameterError("n_jobs", value, "must be a non-zero integer")
    return value
