"""
Structured error types for the system model.

Every manager and provider in the system model raises one of the typed
errors below instead of returning status codes. Each error carries a
category used by the transport layer to pick a status code, a retry flag,
structured context (organization, entity kind and identifier, operation)
and an optional chained cause.

Manifesto:
    - **Typed hierarchy:** One class per error kind the registry can report
    - **Explicit retry semantics:** Only optimistic-concurrency conflicts
      and transient storage failures are retryable
    - **Rich context:** Errors carry identifiers for logging and debugging
    - **Error chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                     SystemModelError                          │
        │           (category, retryable, context, cause)               │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  NotFoundError          AlreadyExistsError                    │
        │  (NOT_FOUND)            (ALREADY_EXISTS)                      │
        │                                                               │
        │  InvalidArgumentError   FailedPreconditionError               │
        │  (INVALID_ARGUMENT)     (FAILED_PRECONDITION)                 │
        │                                                               │
        │  ConflictError          StorageError          InternalError   │
        │  (CONFLICT, retryable)  (STORAGE)             (INTERNAL)      │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = NotFoundError("cluster not found").with_context(
    ...     organization_id="acme", entity_kind="cluster", entity_id="c1"
    ... )
    >>> error.category
    <ErrorCategory.NOT_FOUND: 'NOT_FOUND'>
    >>> error.context.entity_id
    'c1'

Guardrails:
    ❌ DON'T: Raise bare ``Exception`` or ``KeyError`` from a manager
    ✅ DO: Raise the subclass that names the failure kind

    ❌ DON'T: Swallow a driver exception
    ✅ DO: Wrap it in ``StorageError(..., cause=exc)``

Tags:
    error-handling, exception-hierarchy, system-model, registry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories for classification and transport mapping.

    The values mirror the status kinds used by the remote interface, so a
    transport adapter can translate an error without inspecting its class.
    """

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        organization_id: Owning organization of the entity involved
        entity_kind: Kind of entity (``cluster``, ``instance``, ...)
        entity_id: Identifier of the entity involved
        operation: Name of the manager operation that failed
        metadata: Additional key-value pairs
    """

    organization_id: str | None = None
    entity_kind: str | None = None
    entity_id: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["organization_id", "entity_kind", "entity_id", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SystemModelError(Exception):
    """
    Base exception for all system model errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers only pass a message in the common case.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SystemModelError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("organization not found").with_context(
                organization_id=organization_id,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class NotFoundError(SystemModelError):
    """Referenced entity or association is absent."""

    default_category = ErrorCategory.NOT_FOUND


class AlreadyExistsError(SystemModelError):
    """Duplicate primary key or duplicate unique name."""

    default_category = ErrorCategory.ALREADY_EXISTS


class InvalidArgumentError(SystemModelError):
    """
    Malformed request, detected before any write.

    Never retryable - the request must be fixed.
    """

    default_category = ErrorCategory.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class FailedPreconditionError(SystemModelError):
    """State-machine transition not legal from the current state."""

    default_category = ErrorCategory.FAILED_PRECONDITION


class ConflictError(SystemModelError):
    """
    Optimistic concurrency check failed.

    The aggregate changed between read and rewrite. The caller should read
    it again and retry, so this error is retryable by default.
    """

    default_category = ErrorCategory.CONFLICT
    default_retryable = True

    def __init__(
        self,
        message: str,
        *,
        expected_version: int | None = None,
        actual_version: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.expected_version = expected_version
        self.actual_version = actual_version


class StorageError(SystemModelError):
    """The storage backend failed while executing an operation."""

    default_category = ErrorCategory.STORAGE


class InternalError(SystemModelError):
    """An invariant the caller cannot break through normal use was violated."""

    default_category = ErrorCategory.INTERNAL


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SystemModelError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SystemModelError):
        return error.category
    if isinstance(error, ValueError):
        return ErrorCategory.INVALID_ARGUMENT
    if isinstance(error, KeyError):
        return ErrorCategory.NOT_FOUND
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SystemModelError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidArgumentError",
    "FailedPreconditionError",
    "ConflictError",
    "StorageError",
    "InternalError",
    "is_retryable",
    "categorize_error",
]
