"""Security failure adapters producing the shared ``ApiError`` contract.

The security middleware calls these before a request reaches a route, so
the failure never passes through the exception handlers. Both adapters use
the same construction and serialization path as the exception handlers.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response

from edira.core.errors import BASIC_CHALLENGE
from edira.core.errors import FORBIDDEN_MESSAGE
from edira.core.errors import UNAUTHORIZED_MESSAGE
from edira.core.errors import ApiErrorResponse
from edira.core.errors import log_api_error
from edira.core.errors import request_path
from edira.schemas.error import ApiError
from edira.schemas.error import ErrorCode


class AuthenticationEntryPoint:
    """Answer requests whose credentials are missing or invalid."""

    def __call__(self, request: Request) -> Response:
        code = ErrorCode.UNAUTHORIZED
        error = ApiError.build(code.http_status, code, UNAUTHORIZED_MESSAGE, request_path(request))
        log_api_error(error, rule="authentication_entry_point")
        return ApiErrorResponse(error, headers={"WWW-Authenticate": BASIC_CHALLENGE})


class AccessDeniedHandler:
    """Answer authenticated requests that lack the required role."""

    def __call__(self, request: Request) -> Response:
        code = ErrorCode.FORBIDDEN
        error = ApiError.build(code.http_status, code, FORBIDDEN_MESSAGE, request_path(request))
        log_api_error(error, rule="access_denied")
        return ApiErrorResponse(error)
