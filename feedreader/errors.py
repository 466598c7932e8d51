import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import is_error_detail_exposed


logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


class FeedReaderError(Exception):
    """Base class for errors that map onto a stable, client-visible kind."""

    code = "error"
    status_code = 500
    default_message = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.details = dict(details or {})
        super().__init__(self.message)


class ValidationError(FeedReaderError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class AuthError(FeedReaderError):
    code = "unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class BadCredentialsError(AuthError):
    code = "bad_credentials"
    default_message = "Invalid email or password"


class ConflictError(FeedReaderError):
    code = "conflict"
    status_code = 409
    default_message = "Resource already exists"


class DuplicateEmailError(ConflictError):
    code = "duplicate_email"
    default_message = "A user with this email already exists"


class NotFoundError(FeedReaderError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class NoFeedsFoundError(NotFoundError):
    code = "no_feeds_found"
    default_message = "No feed URLs found"


class FetchError(FeedReaderError):
    code = "fetch_error"
    status_code = 502
    default_message = "Unable to fetch remote resource"

    def __init__(
        self,
        url: str,
        message: Optional[str] = None,
        *,
        cause: Optional[BaseException] = None,
    ):
        self.url = url
        self.cause = cause
        details: Dict[str, Any] = {"url": url}
        if cause is not None and is_error_detail_exposed():
            details["cause"] = str(cause)
        super().__init__(message, details=details)


class StorageError(FeedReaderError):
    code = "storage_error"
    status_code = 500
    default_message = "Storage operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.cause = cause
        merged = dict(details or {})
        if cause is not None and is_error_detail_exposed():
            merged["cause"] = str(cause)
        super().__init__(message, details=merged)


class ConfigError(FeedReaderError):
    code = "config_error"
    status_code = 500
    default_message = "Server is misconfigured"


def _problem(
    *,
    code: str,
    message: str,
    status: int,
    trace_id: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body = {
        "type": f"about:blank#{code}",
        "title": message,
        "status": status,
        "code": code,
        "message": message,
        "trace_id": trace_id,
    }
    if details:
        body["details"] = details
    return JSONResponse(
        body,
        status_code=status,
        headers={"X-Trace-Id": trace_id},
        media_type=PROBLEM_MEDIA_TYPE,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FeedReaderError)
    async def feedreader_exc_handler(request: Request, exc: FeedReaderError):  # type: ignore[override]
        trace_id = str(uuid.uuid4())
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                exc.code,
                request.method,
                request.url.path,
                exc.message,
                exc_info=getattr(exc, "cause", None) or exc,
            )
        else:
            logger.info(
                "%s on %s %s: %s",
                exc.code,
                request.method,
                request.url.path,
                exc.message,
            )
        headers_extra = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else {}
        response = _problem(
            code=exc.code,
            message=exc.message,
            status=exc.status_code,
            trace_id=trace_id,
            details=exc.details,
        )
        response.headers.update(headers_extra)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        trace_id = str(uuid.uuid4())
        detail = exc.detail
        if isinstance(detail, dict):
            message = detail.get("message") or detail.get("error") or "HTTP error"
            return _problem(
                code="http_error",
                message=str(message),
                status=exc.status_code,
                trace_id=trace_id,
                details=detail,
            )
        return _problem(code="http_error", message=str(detail), status=exc.status_code, trace_id=trace_id)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        trace_id = str(uuid.uuid4())
        return _problem(
            code="validation_error",
            message="Request validation failed",
            status=422,
            trace_id=trace_id,
            details={"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):  # type: ignore[override]
        trace_id = str(uuid.uuid4())
        logger.exception("Unhandled error: %s", exc)
        return _problem(
            code="internal_error",
            message="An unexpected error occurred",
            status=500,
            trace_id=trace_id,
        )
