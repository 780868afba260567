"""Shared primitives: errors, logging, settings, identifiers, storage plumbing."""

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
from system_model.core.logging import configure_logging, get_logger

__all__ = [
    "AlreadyExistsError",
    "ConflictError",
    "ErrorCategory",
    "ErrorContext",
    "FailedPreconditionError",
    "InternalError",
    "InvalidArgumentError",
    "NotFoundError",
    "StorageError",
    "SystemModelError",
    "categorize_error",
    "configure_logging",
    "get_logger",
    "is_retryable",
]
