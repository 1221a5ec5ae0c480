# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Error taxonomy and the single centralized responder.

Every failure leaves the API as

    {"error": {"code": <ErrorCode>, "message": str, "details"?: list}}

``code`` is the stable, contractual part; ``message`` is for humans.
Business logic raises :class:`ApiError` subclasses; store and token
library exceptions are pattern-matched here and remapped so that their raw
text never reaches the client.  Outside production the envelope also
carries the formatted stack trace.
"""

import enum
import traceback
from http import HTTPStatus
from typing import Any, Optional

import jwt as _jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shipline.core.config import settings
from shipline.core.logger import logger
from shipline.models.vessel import ScheduleError


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ID_FORMAT = "INVALID_ID_FORMAT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    VESSEL_NOT_FOUND = "VESSEL_NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    DUPLICATE_VESSEL = "DUPLICATE_VESSEL"
    DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    TOO_MANY_AUTH_ATTEMPTS = "TOO_MANY_AUTH_ATTEMPTS"
    API_RATE_LIMIT_EXCEEDED = "API_RATE_LIMIT_EXCEEDED"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class ApiError(Exception):
    """Base class: carries everything the responder needs."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR
    message: str = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[list] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class InputValidationError(ApiError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    message = "Request validation failed"


class InvalidIdFormat(ApiError):
    status_code = 400
    code = ErrorCode.INVALID_ID_FORMAT
    message = "Invalid vessel ID format"


class InvalidCredentials(ApiError):
    status_code = 401
    code = ErrorCode.INVALID_CREDENTIALS
    message = "Invalid user ID or password"


class AuthenticationRequired(ApiError):
    status_code = 401
    code = ErrorCode.AUTHENTICATION_REQUIRED
    message = "Authentication token is required"


class InvalidToken(ApiError):
    status_code = 401
    code = ErrorCode.INVALID_TOKEN
    message = "Invalid or expired authentication token"


class TokenExpired(InvalidToken):
    code = ErrorCode.TOKEN_EXPIRED
    message = "Authentication token has expired"


class UserNotFound(ApiError):
    status_code = 401
    code = ErrorCode.USER_NOT_FOUND
    message = "User associated with token no longer exists"


class InsufficientPermissions(ApiError):
    status_code = 403
    code = ErrorCode.INSUFFICIENT_PERMISSIONS
    message = "Insufficient permissions"


class VesselNotFound(ApiError):
    status_code = 404
    code = ErrorCode.VESSEL_NOT_FOUND
    message = "Vessel not found"


class RouteNotFound(ApiError):
    status_code = 404
    code = ErrorCode.ROUTE_NOT_FOUND
    message = "Route not found"


class DuplicateVessel(ApiError):
    status_code = 409
    code = ErrorCode.DUPLICATE_VESSEL
    message = "A vessel with this name and voyage number already exists"


class DuplicateResource(ApiError):
    status_code = 409
    code = ErrorCode.DUPLICATE_RESOURCE
    message = "A resource with these values already exists"


class RequestTooLarge(ApiError):
    status_code = 413
    code = ErrorCode.REQUEST_TOO_LARGE
    message = "Request entity too large"


class TooManyRequests(ApiError):
    status_code = 429
    code = ErrorCode.TOO_MANY_REQUESTS
    message = "Too many requests from this IP, please try again later."


class TooManyAuthAttempts(TooManyRequests):
    code = ErrorCode.TOO_MANY_AUTH_ATTEMPTS
    message = "Too many authentication attempts, please try again later."


class ApiRateLimitExceeded(TooManyRequests):
    code = ErrorCode.API_RATE_LIMIT_EXCEEDED
    message = "API rate limit exceeded, please slow down."


class RequestTimeout(ApiError):
    status_code = 504
    code = ErrorCode.REQUEST_TIMEOUT
    message = "Request took too long to process"


class DatabaseError(ApiError):
    status_code = 500
    code = ErrorCode.DATABASE_ERROR
    message = "Database operation failed"


class InternalServerError(ApiError):
    pass


# ---------------------------------------------------------------------------
# Envelope rendering
# ---------------------------------------------------------------------------


def error_body(exc: ApiError, cause: Optional[BaseException] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": exc.code.value, "message": exc.message}
    if exc.details:
        body["details"] = exc.details
    if not settings.is_production:
        source = cause or exc
        body["stack"] = "".join(
            traceback.format_exception(type(source), source, source.__traceback__)
        )
    return {"error": body}


def error_response(
    exc: ApiError,
    cause: Optional[BaseException] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Render *exc* as the uniform JSON envelope (usable from middleware too)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc, cause),
        headers=headers,
    )


def _log(request: Request, exc: ApiError, cause: Optional[BaseException] = None) -> None:
    line = "%s %s -> %d %s: %s | client=%s user=%s"
    args = (
        request.method,
        request.url.path,
        exc.status_code,
        exc.code.value,
        exc.message,
        request.client.host if request.client else "unknown",
        getattr(request.state, "user_id", None) or "-",
    )
    if exc.status_code >= 500:
        logger.error(line, *args, exc_info=cause or exc)
    else:
        logger.warning(line, *args)


# ---------------------------------------------------------------------------
# Translation of foreign exceptions
# ---------------------------------------------------------------------------


def validation_details(errors) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{field, location, message, received?}``."""
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        location = loc[0] if loc else "body"
        field = ".".join(loc[1:]) or location
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        item = {"field": field, "location": location, "message": message}
        received = err.get("input")
        if isinstance(received, (str, int, float, bool)):
            item["received"] = received
        details.append(item)
    return details


def is_unique_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return "unique" in text or "duplicate" in text


def is_schedule_violation(exc: IntegrityError) -> bool:
    return "ck_vessels_etd_after_eta" in str(exc.orig).lower()


def translate(exc: Exception) -> ApiError:
    """Map any exception onto the taxonomy."""
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, ScheduleError):
        return InputValidationError(
            "Database validation failed",
            details=[{"field": exc.field, "location": "body", "message": str(exc)}],
        )
    if isinstance(exc, IntegrityError):
        if is_unique_violation(exc):
            return DuplicateResource()
        if is_schedule_violation(exc):
            return translate(ScheduleError())
        return DatabaseError()
    if isinstance(exc, SQLAlchemyError):
        return DatabaseError()
    if isinstance(exc, _jwt.ExpiredSignatureError):
        return TokenExpired()
    if isinstance(exc, _jwt.InvalidTokenError):
        return InvalidToken()
    return InternalServerError(
        "Something went wrong" if settings.is_production else str(exc) or type(exc).__name__
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    _log(request, exc)
    return error_response(exc, headers=exc.headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    api_exc = InputValidationError(details=validation_details(exc.errors()))
    _log(request, api_exc)
    return error_response(api_exc, cause=exc)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        api_exc: ApiError = RouteNotFound(f"Route {request.method} {request.url.path} not found")
    elif exc.status_code == 413:
        api_exc = RequestTooLarge()
    elif exc.status_code == 405:
        api_exc = ApiError(f"Method {request.method} not allowed on {request.url.path}")
        api_exc.status_code = 405
        api_exc.code = ErrorCode.METHOD_NOT_ALLOWED
    else:
        api_exc = ApiError(str(exc.detail) or HTTPStatus(exc.status_code).phrase)
        api_exc.status_code = exc.status_code
    _log(request, api_exc)
    return error_response(api_exc, cause=exc, headers=getattr(exc, "headers", None))


async def _foreign_error_handler(request: Request, exc: Exception) -> JSONResponse:
    api_exc = translate(exc)
    _log(request, api_exc, cause=exc)
    return error_response(api_exc, cause=exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the centralized responder on *app*."""
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(ScheduleError, _foreign_error_handler)
    app.add_exception_handler(SQLAlchemyError, _foreign_error_handler)
    app.add_exception_handler(_jwt.InvalidTokenError, _foreign_error_handler)
    app.add_exception_handler(Exception, _foreign_error_handler)
