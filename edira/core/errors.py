"""Exception classification and handler registration for the Edira API.

Every failure raised while serving a request is run through ``ERROR_RULES``
in order. The first matching rule decides the error code, the message and
the validation details; the HTTP status always follows from the code.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import datetime
from datetime import timezone
import json
import logging
from uuid import UUID
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from edira.core.validation import body_validation_details
from edira.core.validation import is_body_validation
from edira.core.validation import parameter_validation_details
from edira.schemas.error import ApiError
from edira.schemas.error import ErrorCode
from edira.schemas.error import ValidationErrorDetail

logger = logging.getLogger(__name__)

BODY_VALIDATION_MESSAGE = "The request contains invalid data."
PARAMETER_VALIDATION_MESSAGE = "Invalid parameters."
NOT_FOUND_MESSAGE = "Resource not found."
BAD_REQUEST_MESSAGE = "Invalid request."
CONFLICT_MESSAGE = "Conflict with the current state of the resource."
UNAUTHORIZED_MESSAGE = "Not authenticated. Please sign in."
FORBIDDEN_MESSAGE = "Access denied."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again later."

BASIC_CHALLENGE = 'Basic realm="edira"'

FALLBACK_ERROR_FIELDS = {
    "status": 500,
    "code": "INTERNAL_ERROR",
    "message": INTERNAL_ERROR_MESSAGE,
}


class EdiraError(Exception):
    """Base class for failures raised explicitly by application code."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "")
        self.message = message


class NotFoundError(EdiraError):
    """A requested resource does not exist."""


class UnauthorizedError(EdiraError):
    """Authentication is missing or invalid for an in-handler check."""


class ForbiddenError(EdiraError):
    """The caller is authenticated but may not perform the operation."""


class ApiErrorResponse(JSONResponse):
    """JSON response carrying a serialized ``ApiError``."""

    media_type = "application/json; charset=utf-8"

    def __init__(self, error: ApiError, headers: dict[str, str] | None = None) -> None:
        super().__init__(status_code=error.status, content=error.to_payload(), headers=headers)


@dataclass(frozen=True)
class Classification:
    """Outcome of running an exception through the rule list."""

    code: ErrorCode
    message: str
    details: Sequence[ValidationErrorDetail] = field(default_factory=tuple)
    rule: str | None = None

    @property
    def status(self) -> int:
        return self.code.http_status


@dataclass(frozen=True)
class ErrorRule:
    """One entry of the ordered classification table."""

    name: str
    matches: Callable[[Exception], bool]
    classify: Callable[[Exception], Classification]


def _message_or(exc: Exception, fallback: str) -> str:
    message = exc.message if isinstance(exc, EdiraError) else str(exc)
    if message and message.strip():
        return message
    return fallback


def _is_body_validation(exc: Exception) -> bool:
    return isinstance(exc, RequestValidationError) and is_body_validation(exc.errors())


def _is_parameter_validation(exc: Exception) -> bool:
    return isinstance(exc, (RequestValidationError, ValidationError))


def _classify_body_validation(exc: RequestValidationError) -> Classification:
    return Classification(
        code=ErrorCode.VALIDATION_ERROR,
        message=BODY_VALIDATION_MESSAGE,
        details=body_validation_details(exc.errors()),
    )


def _classify_parameter_validation(exc: RequestValidationError | ValidationError) -> Classification:
    return Classification(
        code=ErrorCode.VALIDATION_ERROR,
        message=PARAMETER_VALIDATION_MESSAGE,
        details=parameter_validation_details(exc.errors()),
    )


def _classify_not_found(exc: Exception) -> Classification:
    return Classification(code=ErrorCode.NOT_FOUND, message=_message_or(exc, NOT_FOUND_MESSAGE))


def _classify_bad_request(exc: Exception) -> Classification:
    return Classification(code=ErrorCode.BAD_REQUEST, message=_message_or(exc, BAD_REQUEST_MESSAGE))


def _classify_conflict(_: Exception) -> Classification:
    return Classification(code=ErrorCode.CONFLICT, message=CONFLICT_MESSAGE)


def _classify_unauthorized(exc: Exception) -> Classification:
    return Classification(code=ErrorCode.UNAUTHORIZED, message=_message_or(exc, UNAUTHORIZED_MESSAGE))


def _classify_forbidden(exc: Exception) -> Classification:
    return Classification(code=ErrorCode.FORBIDDEN, message=_message_or(exc, FORBIDDEN_MESSAGE))


_CODE_BY_HTTP_STATUS: dict[int, ErrorCode] = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}

_FALLBACK_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.BAD_REQUEST: BAD_REQUEST_MESSAGE,
    ErrorCode.NOT_FOUND: NOT_FOUND_MESSAGE,
    ErrorCode.CONFLICT: CONFLICT_MESSAGE,
    ErrorCode.UNAUTHORIZED: UNAUTHORIZED_MESSAGE,
    ErrorCode.FORBIDDEN: FORBIDDEN_MESSAGE,
}


def _classify_http_exception(exc: StarletteHTTPException) -> Classification:
    if exc.status_code >= 500:
        return Classification(code=ErrorCode.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)

    code = _CODE_BY_HTTP_STATUS.get(exc.status_code, ErrorCode.BAD_REQUEST)
    if code is ErrorCode.CONFLICT:
        return Classification(code=code, message=CONFLICT_MESSAGE)

    detail = exc.detail if isinstance(exc.detail, str) and exc.detail.strip() else None
    return Classification(code=code, message=detail or _FALLBACK_MESSAGES[code])


def _classify_internal(_: Exception) -> Classification:
    return Classification(code=ErrorCode.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)


ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule("body_validation", _is_body_validation, _classify_body_validation),
    ErrorRule("parameter_validation", _is_parameter_validation, _classify_parameter_validation),
    ErrorRule(
        "not_found",
        lambda exc: isinstance(exc, (NotFoundError, NoResultFound)),
        _classify_not_found,
    ),
    ErrorRule("illegal_argument", lambda exc: isinstance(exc, ValueError), _classify_bad_request),
    ErrorRule("integrity_violation", lambda exc: isinstance(exc, IntegrityError), _classify_conflict),
    ErrorRule("unauthorized", lambda exc: isinstance(exc, UnauthorizedError), _classify_unauthorized),
    ErrorRule("forbidden", lambda exc: isinstance(exc, ForbiddenError), _classify_forbidden),
    ErrorRule(
        "http_exception",
        lambda exc: isinstance(exc, StarletteHTTPException),
        _classify_http_exception,
    ),
    ErrorRule("internal_error", lambda exc: True, _classify_internal),
)


def classify_exception(exc: Exception, rules: Sequence[ErrorRule] = ERROR_RULES) -> Classification:
    """Return the classification of the first rule matching ``exc``."""
    for rule in rules:
        if rule.matches(exc):
            return replace(rule.classify(exc), rule=rule.name)
    return replace(_classify_internal(exc), rule="internal_error")


def build_api_error(classification: Classification, path: str, error_id: UUID | None = None) -> ApiError:
    """Turn a classification into the wire payload for ``path``."""
    if classification.code is ErrorCode.VALIDATION_ERROR:
        return ApiError.build_validation(
            classification.status,
            classification.code,
            classification.message,
            path,
            classification.details,
            error_id=error_id,
        )
    return ApiError.build(
        classification.status,
        classification.code,
        classification.message,
        path,
        error_id=error_id,
    )


def log_api_error(error: ApiError, exc: BaseException | None = None, rule: str | None = None) -> None:
    """Log an error response; 5xx at ERROR with the traceback, 4xx at WARNING.

    ``rule`` names the classification rule or security adapter that produced
    the error and is attached to the record for filtering.
    """
    extra = {
        "error_id": str(error.error_id),
        "path": error.path,
        "status": error.status,
        "code": error.code.value,
        "rule": rule,
    }
    if error.status >= 500:
        logger.error(
            "%s %s path=%s errorId=%s",
            error.status,
            error.code.value,
            error.path,
            error.error_id,
            exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
            extra=extra,
        )
        return

    if error.details:
        logger.warning(
            "%s %s path=%s errorId=%s invalidFields=%s",
            error.status,
            error.code.value,
            error.path,
            error.error_id,
            len(error.details),
            extra=extra,
        )
        return

    logger.warning(
        "%s %s path=%s errorId=%s",
        error.status,
        error.code.value,
        error.path,
        error.error_id,
        extra=extra,
    )


def request_path(request: Request) -> str:
    """Path of ``request`` as sent by the client, percent-encoding intact."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.split(b"?", 1)[0].decode("latin-1")


def fallback_error_body(error_id: UUID) -> bytes:
    """Minimal 500 body used when the regular error response cannot be built."""
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        **FALLBACK_ERROR_FIELDS,
        "errorId": str(error_id),
    }
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def build_error_response(request: Request, exc: Exception) -> ApiErrorResponse:
    """Classify ``exc`` raised while serving ``request`` and build its response."""
    error_id = uuid4()
    classification = classify_exception(exc)
    error = build_api_error(classification, request_path(request), error_id=error_id)
    log_api_error(error, exc, rule=classification.rule)
    headers: dict[str, str] = {}
    if isinstance(exc, StarletteHTTPException) and exc.headers:
        headers.update(exc.headers)
    if error.code is ErrorCode.UNAUTHORIZED:
        headers.setdefault("WWW-Authenticate", BASIC_CHALLENGE)
    return ApiErrorResponse(error, headers=headers or None)


async def classified_exception_handler(request: Request, exc: Exception) -> Response:
    """Normalize any recognised failure to the shared ``ApiError`` contract."""

    return build_error_response(request, exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """Last-resort handler; never raises, falls back to a fixed body."""

    try:
        return build_error_response(request, exc)
    except Exception:
        error_id = uuid4()
        logger.exception(
            "Failed to build error response for %s errorId=%s",
            type(exc).__name__,
            error_id,
            extra={"error_id": str(error_id)},
        )
        return Response(
            content=fallback_error_body(error_id),
            status_code=500,
            media_type=ApiErrorResponse.media_type,
        )


CLASSIFIED_EXCEPTIONS: tuple[type[Exception], ...] = (
    RequestValidationError,
    ValidationError,
    StarletteHTTPException,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    NoResultFound,
    IntegrityError,
    ValueError,
)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the Edira error handlers to a FastAPI app instance."""

    for exc_class in CLASSIFIED_EXCEPTIONS:
        app.add_exception_handler(exc_class, classified_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
