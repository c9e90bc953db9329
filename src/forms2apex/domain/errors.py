"""
Custom exception hierarchy for the Forms2APEX service.

This module defines a exception hierarchy with:
- Consistent error codes for API responses
- HTTP status code mappings for FastAPI
- Detailed error messages for debugging

Remote generation failures inside the pipeline are carried as values
(LLMCallResult / ErrorDescriptor), not raised. These exceptions are used
at the edges: settings loading, the LLM client lifecycle, and the HTTP layer.

Usage:
    raise InvalidCredentialError("No API key provided")
    raise ConfigurationError("Invalid settings", details={"error_count": 2})
"""

from typing import Any, Dict, Optional

from .base_enums import GenerationErrorKind


class Forms2ApexException(Exception):
    """
    Base exception for all Forms2APEX errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code (e.g., "LLM_ERROR")
        http_status: HTTP status code to return (default: 500)
        error_kind: Matching GenerationErrorKind, if the failure has one
        details: Optional dictionary with additional error context
    """

    error_code: str = "INTERNAL_ERROR"
    http_status: int = 500
    error_kind: Optional[GenerationErrorKind] = None

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        if http_status:
            self.http_status = http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result: Dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Client Errors (4xx)
# =============================================================================


class InvalidCredentialError(Forms2ApexException):
    """
    Raised when the provider API key is missing or rejected.

    HTTP Status: 401 Unauthorized
    """

    error_code = "INVALID_CREDENTIAL"
    http_status = 401
    error_kind = GenerationErrorKind.INVALID_CREDENTIAL


# =============================================================================
# Server Errors (5xx)
# =============================================================================


class ConfigurationError(Forms2ApexException):
    """
    Raised when settings fail validation at startup.

    HTTP Status: 500 Internal Server Error
    """

    error_code = "CONFIGURATION_ERROR"
    http_status = 500


class LLMError(Forms2ApexException):
    """
    Raised when LLM client operations fail outside a generation run.

    HTTP Status: 503 Service Unavailable

    Examples:
        - Client used before connect()
        - LangChain client construction failure
    """

    error_code = "LLM_ERROR"
    http_status = 503


class ServiceUnavailableError(Forms2ApexException):
    """
    Raised when a required service is not available.

    HTTP Status: 503 Service Unavailable
    """

    error_code = "SERVICE_UNAVAILABLE"
    http_status = 503

