"""
Error taxonomy and result values.

Expected business-rule failures (duplicate registration, full event, ...)
are returned from the service layer as ``Failure`` values instead of being
raised. Routers turn them into HTTP responses with ``unwrap``. Only
unexpected failures (store unreachable, programming errors) travel as
exceptions, and those are reported to the caller as a generic internal error.
"""
import enum
from dataclasses import dataclass
from typing import TypeVar, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import logger


class ErrorKind(str, enum.Enum):
    validation_error = "validation_error"
    unauthenticated = "unauthenticated"
    account_not_found = "account_not_found"
    account_blocked = "account_blocked"
    forbidden = "forbidden"
    not_found = "not_found"
    conflict = "conflict"
    duplicate_registration = "duplicate_registration"
    event_full = "event_full"
    not_registered = "not_registered"
    event_not_yet_occurred = "event_not_yet_occurred"
    already_submitted = "already_submitted"
    invalid_rating = "invalid_rating"
    rate_limited = "rate_limited"
    internal = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.validation_error: status.HTTP_400_BAD_REQUEST,
    ErrorKind.unauthenticated: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.account_not_found: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.account_blocked: status.HTTP_403_FORBIDDEN,
    ErrorKind.forbidden: status.HTTP_403_FORBIDDEN,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.conflict: status.HTTP_409_CONFLICT,
    ErrorKind.duplicate_registration: status.HTTP_409_CONFLICT,
    ErrorKind.event_full: status.HTTP_400_BAD_REQUEST,
    ErrorKind.not_registered: status.HTTP_403_FORBIDDEN,
    ErrorKind.event_not_yet_occurred: status.HTTP_400_BAD_REQUEST,
    ErrorKind.already_submitted: status.HTTP_409_CONFLICT,
    ErrorKind.invalid_rating: status.HTTP_400_BAD_REQUEST,
    ErrorKind.rate_limited: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.internal: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Failure:
    """A typed, user-facing failure returned by the service layer."""

    kind: ErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code


T = TypeVar("T")

# Either the success payload or a Failure, never both.
Result = Union[T, Failure]


def is_failure(result) -> bool:
    return isinstance(result, Failure)


class APIError(Exception):
    """Raised at the HTTP edge to short-circuit a request with a Failure."""

    def __init__(self, failure: Failure, headers: dict = None):
        super().__init__(failure.message)
        self.failure = failure
        self.headers = headers


def unwrap(result: Result):
    """Return the success payload or raise ``APIError`` for a Failure."""
    if isinstance(result, Failure):
        headers = None
        if result.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        raise APIError(result, headers=headers)
    return result


def error_body(kind: ErrorKind, message: str) -> dict:
    return {"success": False, "error": kind.value, "message": message}


_HTTP_KINDS = {
    400: ErrorKind.validation_error,
    401: ErrorKind.unauthenticated,
    403: ErrorKind.forbidden,
    404: ErrorKind.not_found,
    409: ErrorKind.conflict,
    429: ErrorKind.rate_limited,
}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.failure.status_code,
        content=error_body(exc.failure.kind, exc.failure.message),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = _HTTP_KINDS.get(exc.status_code, ErrorKind.internal)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(kind, message),
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit hit on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body(ErrorKind.rate_limited, f"Too many requests: limit is {exc.detail}"),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(ErrorKind.validation_error, message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorKind.internal, "Server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
