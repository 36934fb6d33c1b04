"""Error taxonomy and standardized error responses across all endpoints."""
from enum import Enum
from typing import Any

import sentry_sdk
import structlog
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = structlog.get_logger()


class ErrorKind(str, Enum):
    INPUT = "input"            # submission is missing or has malformed required data
    REMOTE_API = "remote_api"  # provider answered with an error payload or no id
    TRANSPORT = "transport"    # network failure or timeout talking to a provider
    INTERNAL = "internal"      # unexpected exception inside the gateway


class GatewayError(Exception):
    """Base class for errors raised by the gateway itself."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "gateway_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidSubmissionError(GatewayError):
    """A form submission cannot be mapped; raised before any remote call."""

    kind = ErrorKind.INPUT
    code = "invalid_submission"


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all API error handlers."""
    error: str
    message: str
    detail: Any = None
    request_id: str = "unknown"


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    detail: Any = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        detail=detail,
        request_id=request.headers.get("x-request-id", "unknown"),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a consistent JSON envelope."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        request_id=request.headers.get("x-request-id", "unknown"),
    )

    sentry_sdk.capture_exception(exc)

    return error_response(
        request,
        500,
        "internal_server_error",
        "An unexpected error occurred. Our team has been notified.",
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Standardize HTTPException responses into the same JSON envelope."""
    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", f"http_{exc.status_code}")
        message = exc.detail.get("message", str(exc.detail))
        detail: Any = exc.detail.get("detail")
    else:
        error = f"http_{exc.status_code}"
        message = str(exc.detail)
        detail = exc.detail

    response = error_response(request, exc.status_code, error, message, detail)
    response.headers.update(dict(exc.headers or {}))
    return response


async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Gateway errors never reach the caller as unhandled faults."""
    logger.warning(
        "gateway_error",
        error=exc.code,
        error_kind=exc.kind.value,
        message=exc.message,
        path=request.url.path,
    )
    return error_response(request, 500, exc.code, exc.message, {"error_kind": exc.kind.value})
