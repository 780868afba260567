"""Base repository with portable database access.

Provides :class:`BaseRepository` - a base class that wraps a
:class:`~system_model.core.protocols.Connection` so that the SQL providers
can write plain parameterised SQL without referencing a specific driver.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │                                                                    │
    │   conn: Connection        ← protocol from system_model.core.protocols
    │                                                                    │
    │   execute(sql, params)     → cursor                                │
    │   query(sql, params)       → list[dict]                            │
    │   query_one(sql, params)   → dict | None                           │
    │   insert(table, data)      → cursor                                │
    │   commit() / rollback()                                            │
    └────────────────────────────────────────────────────────────────────┘

Usage:
    >>> class ClusterRows(BaseRepository):
    ...     def get_by_id(self, cluster_id: str):
    ...         return self.query_one(
    ...             f"SELECT * FROM clusters WHERE id = {self.ph(1)}",
    ...             (cluster_id,),
    ...         )

Tags:
    repository, database, abstraction, portability
"""

from __future__ import annotations

from typing import Any

from system_model.core.protocols import Connection


class BaseRepository:
    """Base class for data-access repositories.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @classmethod
    def from_session(cls, session: Any, **kwargs: Any) -> BaseRepository:
        """Create a repository backed by a SQLAlchemy ORM session.

        Wraps *session* in :class:`~system_model.core.orm.session.SAConnectionBridge`
        so the ``Connection``-based helpers work over an ORM session.
        """
        from system_model.core.orm.session import SAConnectionBridge

        bridge = SAConnectionBridge(session)
        return cls(conn=bridge, **kwargs)  # type: ignore[arg-type]

    # -- Convenience shortcuts ---------------------------------------------

    @staticmethod
    def ph(count: int) -> str:
        """Comma-separated positional placeholders.

        Embed directly in f-strings:

            f"SELECT * FROM t WHERE id = {self.ph(1)}"
        """
        return ", ".join("?" for _ in range(count))

    # -- Query helpers -----------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a statement and return the raw cursor/result."""
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return rows as dicts.

        Column names come from ``cursor.description`` (DB-API 2.0), which
        both ``sqlite3`` cursors and the session bridge expose.
        """
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []

        if getattr(cursor, "description", None):
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]

        return [dict(row) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        """Execute a SELECT and return the first row as a dict (or None)."""
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: tuple = ()) -> Any:
        """Execute a SELECT and return the first column of the first row."""
        row = self.conn.execute(sql, params).fetchone()
        return row[0] if row is not None else None

    # -- Insert helpers ----------------------------------------------------

    def insert(self, table: str, data: dict[str, Any]) -> Any:
        """Insert a single row from a dict.

        Column names come from ``data.keys()``; values are bound positionally.
        """
        columns = list(data.keys())
        values = list(data.values())
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({self.ph(len(values))})"
        return self.conn.execute(sql, tuple(values))

    def commit(self) -> None:
        """Commit the current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self.conn.rollback()


__all__ = [
    "BaseRepository",
]
