"""
Request middleware and exception handlers for the Forms2APEX API.

Generation failures (rate limits, bad keys, provider errors) are not
exceptions: the generate route reports them in GenerateResponse.error.
What reaches the handlers here is the small set of failures that stop a
request before or outside a run:

- Forms2ApexException: missing key (401), client unavailable (503)
- RequestValidationError: malformed request body (422)
- anything else: generic 500

Every error body is an ErrorResponse. When the failure is one a run could
also report, `kind` carries the same GenerationErrorKind value so clients
can handle both paths with one switch.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.base_enums import GenerationErrorKind
from ..domain.errors import Forms2ApexException
from ..domain.responses import ErrorResponse
from ..utils.logging import get_module_logger
from ..utils.tracing import current_trace_id, generate_trace_id, set_trace_id

logger = get_module_logger()

TRACE_HEADER = "X-Trace-ID"


async def request_context_middleware(request: Request, call_next: Callable) -> Response:
    """
    Bind a trace ID to the request and log it.

    The trace ID comes from X-Trace-ID or is generated, and is echoed in
    the response along with X-Process-Time (ms). The X-API-Key value is
    never logged, only whether it was sent.
    """
    trace_id = request.headers.get(TRACE_HEADER) or generate_trace_id()
    set_trace_id(trace_id)
    started = time.perf_counter()

    logger.info(
        "HTTP request started",
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else None,
        has_api_key="x-api-key" in request.headers,
        trace_id=trace_id,
    )

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers[TRACE_HEADER] = trace_id
    response.headers["X-Process-Time"] = str(duration_ms)

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        trace_id=trace_id,
    )

    return response


def _error_response(
    status_code: int,
    error: str,
    message: str,
    kind: Optional[GenerationErrorKind] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error.lower(),
        message=message,
        kind=kind,
        details=details or None,
        trace_id=current_trace_id(),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def forms2apex_exception_handler(request: Request, exc: Forms2ApexException) -> JSONResponse:
    """Render a Forms2ApexException with its own status, code and error kind."""
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{type(exc).__name__}: {exc.message}",
        error_code=exc.error_code,
        error_kind=exc.error_kind.value if exc.error_kind else None,
        http_status=exc.http_status,
        path=request.url.path,
        trace_id=current_trace_id(),
    )
    return _error_response(exc.http_status, exc.error_code, exc.message, exc.error_kind, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are invalid input, as an invalid run would report."""
    errors: List[Dict[str, str]] = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        error_count=len(errors),
        fields=[e["field"] for e in errors],
        path=request.url.path,
        trace_id=current_trace_id(),
    )

    return _error_response(
        422,
        "VALIDATION_ERROR",
        "Request validation failed",
        GenerationErrorKind.INVALID_INPUT,
        {"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log everything, return nothing internal."""
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        trace_id=current_trace_id(),
        exc_info=True,
    )
    return _error_response(500, "INTERNAL_ERROR", "An internal server error occurred. Please try again later.")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the handlers above to the application."""
    app.add_exception_handler(Forms2ApexException, forms2apex_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)


# =============================================================================
# OpenAPI error documentation
# =============================================================================

_ERROR_DOCS: Dict[int, Dict[str, Any]] = {
    401: {
        "description": "No provider API key in X-API-Key and none configured",
        "error": "invalid_credential",
        "message": "No API key provided",
        "kind": GenerationErrorKind.INVALID_CREDENTIAL.value,
    },
    422: {
        "description": "Request body failed validation",
        "error": "validation_error",
        "message": "Request validation failed",
        "kind": GenerationErrorKind.INVALID_INPUT.value,
        "details": {"errors": [{"field": "body.unit_name", "message": "Field required", "type": "missing"}]},
    },
    500: {
        "description": "Unexpected server error",
        "error": "internal_error",
        "message": "An internal server error occurred. Please try again later.",
    },
    503: {
        "description": "LLM client not available",
        "error": "service_unavailable",
        "message": "LLM service is not available",
    },
}


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    OpenAPI `responses=` entries for the given status codes.

    Usage:
        @app.post("/endpoint", responses=error_responses(401, 422))
    """
    responses: Dict[int, Dict[str, Any]] = {}
    for status_code in status_codes:
        doc = dict(_ERROR_DOCS[status_code])
        description = doc.pop("description")
        example = {**doc, "trace_id": "550e8400-e29b-41d4-a716-446655440000", "timestamp": "2024-01-15T10:30:00Z"}
        responses[status_code] = {
            "description": description,
            "content": {"application/json": {"example": example}},
        }
    return responses
