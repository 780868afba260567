"""
Canonical protocol definitions for the system model.

Every module that needs a database connection imports the
:class:`Connection` protocol from here. SQL providers depend on this shape,
not on a driver, so the same provider code runs over a raw
``sqlite3.Connection`` or a SQLAlchemy session wrapped in
:class:`~system_model.core.orm.session.SAConnectionBridge`.

Tags:
    protocol, connection, database, system-model
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Implementations:
        - ``sqlite3.Connection`` (native)
        - ``SAConnectionBridge`` wrapping a SQLAlchemy ``Session``
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back the current transaction."""
        ...


__all__ = ["Connection"]
