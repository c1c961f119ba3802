"""Unit tests for error and warning items."""

import pytest
from pydantic import ValidationError

from apikit.schemas.error import ActionErrorType, ActionWarning, Error, FieldError


def test_error_serializes_all_keys_with_nulls() -> None:
    error = Error(type=ActionErrorType.SERVER_ERROR)

    assert error.serialize() == {"type": "SERVER_ERROR", "description": None, "uid": None}


@pytest.mark.parametrize(
    "description, uid",
    [("Something went wrong", "a1b2c3d"), ("Something went wrong", None), (None, "a1b2c3d"), (None, None)],
)
def test_error_serializes_description_and_uid(description: str | None, uid: str | None) -> None:
    payload = Error(type=ActionErrorType.BAD_REQUEST, description=description, uid=uid).serialize()

    assert payload["description"] == description
    assert payload["uid"] == uid


def test_field_error_serializes_code_and_field_name() -> None:
    error = FieldError(
        type=ActionErrorType.VALIDATION_ERROR,
        field_name="email",
        code="EMAIL_REQUIRED",
        description="The required property (`email`) is missing.",
    )

    assert error.serialize() == {
        "type": "VALIDATION_ERROR",
        "code": "EMAIL_REQUIRED",
        "fieldName": "email",
        "description": "The required property (`email`) is missing.",
        "uid": None,
    }


def test_field_error_accepts_alias() -> None:
    error = FieldError(type=ActionErrorType.VALIDATION_ERROR, fieldName="user.age", code="USER_AGE_TYPE")

    assert error.field_name == "user.age"


def test_field_error_requires_field_name() -> None:
    with pytest.raises(ValidationError):
        FieldError(type=ActionErrorType.VALIDATION_ERROR, field_name="", code="_REQUIRED")


def test_error_type_must_be_known() -> None:
    with pytest.raises(ValidationError):
        Error(type="TEAPOT")  # type: ignore[arg-type]


def test_error_type_accepts_enum_value_string() -> None:
    assert Error(type="RESOURCE_NOT_FOUND").type is ActionErrorType.RESOURCE_NOT_FOUND  # type: ignore[arg-type]


def test_items_are_immutable() -> None:
    error = Error(type=ActionErrorType.SERVER_ERROR, description="before")

    with pytest.raises(ValidationError):
        error.description = "after"  # type: ignore[misc]


def test_warning_serializes_type_description_and_uid() -> None:
    warning = ActionWarning(type="DEPRECATED", description="Use /v2/users instead.")

    assert warning.serialize() == {"type": "DEPRECATED", "description": "Use /v2/users instead.", "uid": None}


def test_action_error_type_values_match_names() -> None:
    assert len(ActionErrorType) == 10
    for member in ActionErrorType:
        assert member.value == member.name
