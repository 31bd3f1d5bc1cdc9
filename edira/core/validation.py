"""Conversion of framework validation errors into field-level details."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

from edira.schemas.error import ValidationErrorDetail

BODY_LOCATION = "body"
PARAMETER_LOCATIONS = frozenset({"query", "path", "header", "cookie"})
DEFAULT_FIELD = "request"
DEFAULT_MESSAGE = "Invalid value"


def is_body_validation(errors: Iterable[Mapping[str, Any]]) -> bool:
    """Return True when any reported error points into the request body."""
    for issue in errors:
        location = _location(issue)
        if location and location[0] == BODY_LOCATION:
            return True
    return False


def body_validation_details(errors: Iterable[Mapping[str, Any]]) -> list[ValidationErrorDetail]:
    """Details for whole-body validation failures, in reported order."""
    return [
        ValidationErrorDetail(
            field=_format_location(_location(issue), prefixes={BODY_LOCATION}),
            message=_message(issue),
        )
        for issue in errors
    ]


def parameter_validation_details(errors: Iterable[Mapping[str, Any]]) -> list[ValidationErrorDetail]:
    """Details for query/path/header parameters or validated call arguments."""
    return [
        ValidationErrorDetail(
            field=_format_location(_location(issue), prefixes=PARAMETER_LOCATIONS),
            message=_message(issue),
        )
        for issue in errors
    ]


def _location(issue: Mapping[str, Any]) -> Sequence[Any]:
    location = issue.get("loc", ())
    if isinstance(location, (tuple, list)):
        return location
    return (location,)


def _message(issue: Mapping[str, Any]) -> str:
    message = issue.get("msg")
    if message is None or str(message) == "":
        return DEFAULT_MESSAGE
    return str(message)


def _format_location(location: Sequence[Any], *, prefixes: Iterable[str]) -> str:
    if not location:
        return DEFAULT_FIELD

    parts = list(location)
    if parts[0] in prefixes and len(parts) > 1:
        parts = parts[1:]
    return ".".join(str(part) for part in parts)
