"""
Error types and handlers for the momentum API.

Service code raises AppError subclasses; the handlers here turn those, HTTP
errors, request schema failures and anything unexpected into one envelope:
{"error": {code, message, request_id, retryable}, "detail": message}.
"""

import logging
import builtins
from typing import Optional
from uuid import uuid4

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from momentum_engine.core.logging import get_request_id

logger = logging.getLogger("momentum")


class AppError(Exception):
    code = "app_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, ValueError):
    code = "not_found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    code = "forbidden"
    status_code = 403


class ConflictError(AppError):
    """Raised when a concurrent writer won every retry of a serialized insert."""
    code = "conflict"
    status_code = 409
    retryable = True


class DependencyError(AppError):
    """A backing store or catalog could not be reached; callers may retry."""
    code = "dependency_unavailable"
    status_code = 503
    retryable = True


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str, retryable: bool = False) -> dict:
    return {
        "error": {"code": code, "message": message, "request_id": request_id, "retryable": retryable},
        "detail": message,
    }


def _error_response(
    rid: str,
    status_code: int,
    code: str,
    message: str,
    *,
    retryable: bool = False,
    log_msg: str = "app.error",
    exc_info: bool = False,
) -> JSONResponse:
    """Log one line for the failure and build the envelope response."""
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(
        level,
        log_msg,
        exc_info=exc_info,
        extra={"request_id": rid, "error_code": code, "status": status_code},
    )
    response = JSONResponse(status_code=status_code, content=_error_payload(code, message, rid, retryable))
    response.headers["x-request-id"] = rid
    return response


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    return _error_response(rid, exc.status_code, exc.code, exc.message, retryable=exc.retryable)


async def http_error_handler(request: Request, exc: HTTPException):
    # 401 from the X-User-Id dependency and router-level 404s land here
    code = "not_found" if exc.status_code == 404 else "http_error"
    return _error_response(
        _extract_request_id(request),
        exc.status_code,
        code,
        exc.detail or "HTTP error",
        log_msg="http.error",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body/query schema failures use the same 400 validation_error as service checks."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    reason = first.get("msg", "invalid request")
    return _error_response(
        _extract_request_id(request),
        400,
        ValidationError.code,
        f"{location}: {reason}" if location else reason,
        log_msg="request.invalid",
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    return _error_response(
        _extract_request_id(request),
        500,
        "internal_error",
        "Unexpected error",
        log_msg="unhandled.exception",
        exc_info=True,
    )
