"""Unit tests for the error taxonomy and its HTTP mapping."""

import pytest

from onboarding.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    OnboardingError,
    StorageError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "status_code"),
    [
        (ValidationError, 422),
        (AuthorizationError, 403),
        (NotFoundError, 404),
        (ConflictError, 409),
        (StorageError, 502),
    ],
)
def test_status_codes(error_cls: type[OnboardingError], status_code: int) -> None:
    error = error_cls("boom")
    assert isinstance(error, OnboardingError)
    assert error.status_code == status_code


def test_detail_is_flattened_into_dict() -> None:
    error = ValidationError("Required fields are missing", missing_fields=["sex"])
    assert error.to_dict() == {
        "message": "Required fields are missing",
        "missing_fields": ["sex"],
    }
    assert str(error) == "Required fields are missing"


def test_detail_defaults_to_empty() -> None:
    assert NotFoundError("gone").detail == {}
