"""Unit tests for validation detail extraction."""

from __future__ import annotations

from edira.core.validation import body_validation_details
from edira.core.validation import is_body_validation
from edira.core.validation import parameter_validation_details
from edira.schemas.error import ValidationErrorDetail


def test_body_details_strip_the_body_segment_and_keep_order() -> None:
    errors = [
        {"loc": ("body", "name"), "msg": "Field required"},
        {"loc": ("body", "address", "street"), "msg": "String should have at least 1 character"},
        {"loc": ("body", "items", 0, "sku"), "msg": "Field required"},
    ]

    assert body_validation_details(errors) == [
        ValidationErrorDetail(field="name", message="Field required"),
        ValidationErrorDetail(field="address.street", message="String should have at least 1 character"),
        ValidationErrorDetail(field="items.0.sku", message="Field required"),
    ]


def test_body_details_for_the_whole_body_use_body_as_field() -> None:
    details = body_validation_details([{"loc": ("body",), "msg": "Field required"}])

    assert details == [ValidationErrorDetail(field="body", message="Field required")]


def test_duplicate_failures_on_one_field_are_all_reported() -> None:
    errors = [
        {"loc": ("body", "email"), "msg": "first"},
        {"loc": ("body", "email"), "msg": "second"},
    ]

    assert [detail.message for detail in body_validation_details(errors)] == ["first", "second"]


def test_parameter_details_strip_the_parameter_location() -> None:
    errors = [
        {"loc": ("query", "page"), "msg": "Input should be greater than or equal to 1"},
        {"loc": ("path", "client_id"), "msg": "Input should be a valid UUID"},
        {"loc": ("size",), "msg": "Input should be greater than or equal to 1"},
    ]

    assert [detail.field for detail in parameter_validation_details(errors)] == ["page", "client_id", "size"]


def test_missing_location_and_message_use_defaults() -> None:
    assert parameter_validation_details([{}]) == [ValidationErrorDetail(field="request", message="Invalid value")]


def test_body_validation_is_detected_by_location() -> None:
    assert is_body_validation([{"loc": ("query", "page")}, {"loc": ("body", "name")}])
    assert not is_body_validation([{"loc": ("query", "page")}])
    assert not is_body_validation([])
