"""Unit tests for the ApiError payload model."""

from __future__ import annotations

from datetime import datetime
from datetime import timezone
import json
import uuid

import pytest
from pydantic import ValidationError

from edira.schemas.error import ApiError
from edira.schemas.error import ErrorCode
from edira.schemas.error import ValidationErrorDetail


def _contract_tuple(error: ApiError) -> tuple:
    return (error.status, error.code, error.message, error.path, error.details)


def test_build_sets_timestamp_error_id_and_empty_details() -> None:
    before = datetime.now(timezone.utc)

    error = ApiError.build(404, ErrorCode.NOT_FOUND, "Pipeline not found", "/pipelines/7")

    assert error.status == 404
    assert error.code is ErrorCode.NOT_FOUND
    assert error.message == "Pipeline not found"
    assert error.path == "/pipelines/7"
    assert error.details == ()
    assert error.error_id.version == 4
    assert error.timestamp.tzinfo is not None
    assert before <= error.timestamp <= datetime.now(timezone.utc)


def test_build_keeps_a_pregenerated_error_id() -> None:
    error_id = uuid.uuid4()

    error = ApiError.build(400, ErrorCode.BAD_REQUEST, "bad", "/x", error_id=error_id)

    assert error.error_id == error_id
    assert error.to_payload()["errorId"] == str(error_id)


def test_error_ids_are_unique_per_instance() -> None:
    ids = {ApiError.build(500, ErrorCode.INTERNAL_ERROR, "boom", "/x").error_id for _ in range(500)}

    assert len(ids) == 500


@pytest.mark.parametrize("details", [None, [], ()])
def test_build_validation_normalizes_missing_details_to_empty(details) -> None:
    error = ApiError.build_validation(400, ErrorCode.VALIDATION_ERROR, "invalid", "/x", details)

    assert error.details == ()


def test_build_validation_copies_the_callers_details() -> None:
    details = [ValidationErrorDetail(field="email", message="Field required")]

    error = ApiError.build_validation(400, ErrorCode.VALIDATION_ERROR, "invalid", "/users", details)
    details.append(ValidationErrorDetail(field="name", message="Field required"))
    details.clear()

    assert error.details == (ValidationErrorDetail(field="email", message="Field required"),)


def test_api_error_is_immutable() -> None:
    error = ApiError.build(409, ErrorCode.CONFLICT, "conflict", "/x")

    with pytest.raises(ValidationError):
        error.message = "changed"


def test_status_must_match_the_code() -> None:
    with pytest.raises(ValidationError):
        ApiError.build(500, ErrorCode.NOT_FOUND, "mismatch", "/x")


def test_message_must_not_be_empty() -> None:
    with pytest.raises(ValidationError):
        ApiError.build(400, ErrorCode.BAD_REQUEST, "", "/x")


def test_payload_omits_empty_details() -> None:
    error = ApiError.build(403, ErrorCode.FORBIDDEN, "Access denied.", "/admin/ping")

    payload = error.to_payload()

    assert set(payload) == {"timestamp", "path", "status", "code", "message", "errorId"}
    assert payload["code"] == "FORBIDDEN"
    assert payload["status"] == 403
    assert payload["timestamp"].endswith("Z")
    uuid.UUID(payload["errorId"])


def test_payload_lists_validation_details_in_order() -> None:
    error = ApiError.build_validation(
        400,
        ErrorCode.VALIDATION_ERROR,
        "invalid",
        "/users",
        [
            ValidationErrorDetail(field="email", message="Field required"),
            ValidationErrorDetail(field="email", message="Value is not a valid email"),
        ],
    )

    assert error.to_payload()["details"] == [
        {"field": "email", "message": "Field required"},
        {"field": "email", "message": "Value is not a valid email"},
    ]


@pytest.mark.parametrize(
    "error",
    [
        ApiError.build(404, ErrorCode.NOT_FOUND, "Client not found", "/clients/1"),
        ApiError.build_validation(
            400,
            ErrorCode.VALIDATION_ERROR,
            "The request contains invalid data.",
            "/clients",
            [ValidationErrorDetail(field="name", message="Field required")],
        ),
    ],
)
def test_serialized_payload_round_trips(error: ApiError) -> None:
    payload = json.loads(json.dumps(error.to_payload()))

    restored = ApiError.model_validate(payload)

    assert _contract_tuple(restored) == _contract_tuple(error)
    assert restored.timestamp == error.timestamp
    assert restored.error_id == error.error_id
    assert restored.to_payload() == payload
