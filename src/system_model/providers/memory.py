"""In-memory entity store.

Thread-safe: one lock per store, held for the duration of one operation.
Entities are deep-copied on the way in and on the way out so callers never
alias stored state.
"""

from __future__ import annotations

import copy
import threading

from system_model.providers.base import EntityBinding


class MemoryEntityStore[T]:
    """Dict-backed :class:`~system_model.providers.base.EntityStore`."""

    def __init__(self, binding: EntityBinding[T]) -> None:
        self.binding = binding
        self._entities: dict[str, T] = {}
        self._lock = threading.Lock()

    def add(self, entity: T) -> None:
        key = self.binding.key(entity)
        with self._lock:
            if key in self._entities:
                raise self.binding.already_exists(key)
            self._entities[key] = copy.deepcopy(entity)

    def get(self, key: str) -> T:
        with self._lock:
            entity = self._entities.get(key)
            if entity is None:
                raise self.binding.not_found(key)
            return copy.deepcopy(entity)

    def update(self, entity: T) -> None:
        key = self.binding.key(entity)
        with self._lock:
            current = self._entities.get(key)
            if current is None:
                raise self.binding.not_found(key)
            if self.binding.versioned:
                if current.version != entity.version:
                    raise self.binding.conflict(key, entity.version, current.version)
                entity.version += 1
            self._entities[key] = copy.deepcopy(entity)

    def remove(self, key: str) -> None:
        with self._lock:
            if self._entities.pop(key, None) is None:
                raise self.binding.not_found(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._entities

    def list_by_owner(self, owner_id: str) -> list[T]:
        with self._lock:
            return [
                copy.deepcopy(self._entities[key])
                for key in sorted(self._entities)
                if self.binding.owner(self._entities[key]) == owner_id
            ]

    def clear(self) -> None:
        with self._lock:
            self._entities.clear()
