"""SQL entity store.

Each entity is one row ``(id, owner_id, version, document)`` where
``document`` is the JSON rendering of the dataclass produced by a pydantic
``TypeAdapter``. Statements go through :class:`BaseRepository` over a
SQLAlchemy session wrapped in ``SAConnectionBridge``.

Every public call is one transaction: committed on success, rolled back on
any failure. Driver errors surface as ``StorageError``.
"""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from system_model.core.errors import StorageError
from system_model.core.logging import get_logger
from system_model.core.repository import BaseRepository
from system_model.providers.base import EntityBinding

logger = get_logger(__name__)


class SQLProvider:
    """Session-backed provider: one repository, one lock, one transaction per call."""

    kind: str = "entity"

    def __init__(self, session: Session) -> None:
        self._session = session
        self._repo = BaseRepository.from_session(session)
        self._lock = threading.Lock()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[BaseRepository]:
        with self._lock:
            try:
                yield self._repo
                self._repo.commit()
            except SQLAlchemyError as exc:
                self._repo.rollback()
                logger.error("storage_failed", entity_kind=self.kind, operation=operation, error=str(exc))
                raise StorageError(f"{operation} failed", cause=exc).with_context(
                    entity_kind=self.kind, operation=operation
                ) from exc
            except Exception:
                self._repo.rollback()
                raise

    def close(self) -> None:
        self._session.close()


class SQLEntityStore[T](SQLProvider):
    """:class:`~system_model.providers.base.EntityStore` over one document table."""

    def __init__(self, binding: EntityBinding[T], session: Session) -> None:
        super().__init__(session)
        self.binding = binding
        self.kind = binding.kind
        self._table = binding.table
        self._adapter: TypeAdapter[T] = TypeAdapter(binding.entity_type)

    def _dump(self, entity: T) -> str:
        return self._adapter.dump_json(entity).decode("utf-8")

    def _load(self, row: dict[str, Any]) -> T:
        return self._adapter.validate_json(row["document"])

    def _version_of(self, repo: BaseRepository, key: str) -> int | None:
        return repo.scalar(
            f"SELECT version FROM {self._table} WHERE id = {repo.ph(1)}",
            (key,),
        )

    def add(self, entity: T) -> None:
        key = self.binding.key(entity)
        with self._transaction("add") as repo:
            if self._version_of(repo, key) is not None:
                raise self.binding.already_exists(key)
            repo.insert(
                self._table,
                {
                    "id": key,
                    "owner_id": self.binding.owner(entity),
                    "version": getattr(entity, "version", 0),
                    "document": self._dump(entity),
                },
            )

    def get(self, key: str) -> T:
        with self._transaction("get") as repo:
            row = repo.query_one(
                f"SELECT document FROM {self._table} WHERE id = {repo.ph(1)}",
                (key,),
            )
        if row is None:
            raise self.binding.not_found(key)
        return self._load(row)

    def update(self, entity: T) -> None:
        key = self.binding.key(entity)
        owner = self.binding.owner(entity)
        with self._transaction("update") as repo:
            stored_version = self._version_of(repo, key)
            if stored_version is None:
                raise self.binding.not_found(key)
            if not self.binding.versioned:
                repo.execute(
                    f"UPDATE {self._table} SET owner_id = {repo.ph(1)}, document = {repo.ph(1)} "
                    f"WHERE id = {repo.ph(1)}",
                    (owner, self._dump(entity), key),
                )
                return
            expected = entity.version
            if stored_version != expected:
                raise self.binding.conflict(key, expected, stored_version)
            # The caller's entity keeps its version until the commit succeeded.
            document = self._dump(dataclasses.replace(entity, version=expected + 1))
            cursor = repo.execute(
                f"UPDATE {self._table} SET owner_id = {repo.ph(1)}, version = {repo.ph(1)}, "
                f"document = {repo.ph(1)} WHERE id = {repo.ph(1)} AND version = {repo.ph(1)}",
                (owner, expected + 1, document, key, expected),
            )
            if cursor.rowcount == 0:
                raise self.binding.conflict(key, expected, self._version_of(repo, key) or -1)
        entity.version = expected + 1

    def remove(self, key: str) -> None:
        with self._transaction("remove") as repo:
            cursor = repo.execute(f"DELETE FROM {self._table} WHERE id = {repo.ph(1)}", (key,))
            if cursor.rowcount == 0:
                raise self.binding.not_found(key)

    def exists(self, key: str) -> bool:
        with self._transaction("exists") as repo:
            return self._version_of(repo, key) is not None

    def list_by_owner(self, owner_id: str) -> list[T]:
        with self._transaction("list") as repo:
            rows = repo.query(
                f"SELECT document FROM {self._table} WHERE owner_id = {repo.ph(1)} ORDER BY id",
                (owner_id,),
            )
        return [self._load(row) for row in rows]

    def clear(self) -> None:
        with self._transaction("clear") as repo:
            repo.execute(f"DELETE FROM {self._table}")
