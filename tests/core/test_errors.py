"""Tests for the error hierarchy."""

import pytest

from system_model.core.errors import (
    AlreadyExistsError,
    ConflictError,
    ErrorCategory,
    ErrorContext,
    FailedPreconditionError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
    SystemModelError,
    categorize_error,
    is_retryable,
)


class TestCategories:
    @pytest.mark.parametrize(
        ("error_cls", "category"),
        [
            (NotFoundError, ErrorCategory.NOT_FOUND),
            (AlreadyExistsError, ErrorCategory.ALREADY_EXISTS),
            (InvalidArgumentError, ErrorCategory.INVALID_ARGUMENT),
            (FailedPreconditionError, ErrorCategory.FAILED_PRECONDITION),
            (ConflictError, ErrorCategory.CONFLICT),
            (StorageError, ErrorCategory.STORAGE),
            (InternalError, ErrorCategory.INTERNAL),
        ],
    )
    def test_default_category(self, error_cls, category):
        assert error_cls("boom").category == category

    def test_subclasses_share_base(self):
        assert issubclass(NotFoundError, SystemModelError)
        assert issubclass(ConflictError, SystemModelError)


class TestRetryable:
    def test_conflict_is_retryable(self):
        assert is_retryable(ConflictError("moved", expected_version=1, actual_version=2))

    def test_not_found_is_not_retryable(self):
        assert not is_retryable(NotFoundError("gone"))

    def test_override(self):
        assert is_retryable(StorageError("locked", retryable=True))

    def test_plain_exception(self):
        assert not is_retryable(RuntimeError("x"))


class TestContext:
    def test_with_context_sets_known_fields(self):
        error = NotFoundError("cluster not found").with_context(
            organization_id="acme", entity_kind="cluster", entity_id="c1"
        )
        assert error.context.organization_id == "acme"
        assert error.context.entity_id == "c1"

    def test_with_context_unknown_keys_go_to_metadata(self):
        error = NotFoundError("x").with_context(device_group_name="sensors")
        assert error.context.metadata == {"device_group_name": "sensors"}

    def test_to_dict(self):
        cause = ValueError("bad row")
        error = StorageError("add failed", cause=cause).with_context(entity_kind="node")
        data = error.to_dict()
        assert data["error_type"] == "StorageError"
        assert data["category"] == "STORAGE"
        assert data["context"] == {"entity_kind": "node"}
        assert data["cause"] == "bad row"
        assert error.__cause__ is cause

    def test_empty_context_dict(self):
        assert ErrorContext().to_dict() == {}


class TestSpecificErrors:
    def test_invalid_argument_field(self):
        error = InvalidArgumentError("name cannot be empty", field="name", value="")
        assert error.to_dict()["field"] == "name"

    def test_conflict_versions(self):
        error = ConflictError("moved", expected_version=3, actual_version=4)
        assert (error.expected_version, error.actual_version) == (3, 4)


class TestCategorize:
    def test_system_model_error(self):
        assert categorize_error(AlreadyExistsError("dup")) == ErrorCategory.ALREADY_EXISTS

    def test_value_error(self):
        assert categorize_error(ValueError("x")) == ErrorCategory.INVALID_ARGUMENT

    def test_key_error(self):
        assert categorize_error(KeyError("x")) == ErrorCategory.NOT_FOUND

    def test_other(self):
        assert categorize_error(RuntimeError("x")) == ErrorCategory.UNKNOWN
