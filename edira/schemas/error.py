"""Error contract schemas shared by the exception handlers and security adapters."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Any
from uuid import UUID
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator


class ErrorCode(str, Enum):
    """Logical error kinds exposed to API clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def http_status(self) -> int:
        """Canonical HTTP status for this code."""
        return _HTTP_STATUS_BY_CODE[self]


_HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ApiError(BaseModel):
    """Canonical error payload returned for every failed request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(description="Instant the error was raised, in UTC")
    path: str = Field(description="Requested path")
    status: int = Field(description="HTTP status code")
    code: ErrorCode = Field(description="Logical error code")
    message: str = Field(min_length=1, description="Human readable summary")
    details: tuple[ValidationErrorDetail, ...] = Field(
        default=(),
        description="Field level validation failures, only present for VALIDATION_ERROR",
    )
    error_id: UUID = Field(alias="errorId", description="Correlation id for server logs")

    @field_validator("details", mode="before")
    @classmethod
    def _freeze_details(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(value)
        return value

    @model_validator(mode="after")
    def _status_matches_code(self) -> ApiError:
        if self.status != self.code.http_status:
            raise ValueError(f"status {self.status} does not match code {self.code.value}")
        return self

    @classmethod
    def build(
        cls,
        status: int,
        code: ErrorCode,
        message: str,
        path: str,
        error_id: UUID | None = None,
    ) -> ApiError:
        """Build an error without validation details."""
        return cls(
            timestamp=datetime.now(timezone.utc),
            path=path,
            status=status,
            code=code,
            message=message,
            details=(),
            error_id=error_id or uuid4(),
        )

    @classmethod
    def build_validation(
        cls,
        status: int,
        code: ErrorCode,
        message: str,
        path: str,
        details: Iterable[ValidationErrorDetail] | None,
        error_id: UUID | None = None,
    ) -> ApiError:
        """Build an error carrying a copy of the given validation details."""
        return cls(
            timestamp=datetime.now(timezone.utc),
            path=path,
            status=status,
            code=code,
            message=message,
            details=tuple(details) if details is not None else (),
            error_id=error_id or uuid4(),
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready body; ``details`` is left out when empty."""
        exclude = None if self.details else {"details"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


def _documented(description: str) -> dict[str, Any]:
    return {"model": ApiError, "description": description}


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: _documented("Invalid request or validation failure"),
    401: _documented("Not authenticated"),
    403: _documented("Access denied"),
    404: _documented("Resource not found"),
    409: _documented("Conflict with the current resource state"),
    500: _documented("Internal error"),
}
