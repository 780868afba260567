"""
Shared plumbing for managers whose entities are tracked by the
Organization Index.

Write ordering:

    Add:                      entity store → index       (undo: remove entity)
    Remove, store first:      entity store → index       (undo: re-add entity)
    Remove, index first:      index → entity store       (undo: re-add index entry)

Reads check the owner and the index membership before touching the
entity store; lists read identifiers from the index and join them against
the entity store.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar

from system_model.core.compensation import DualWrite
from system_model.core.errors import NotFoundError
from system_model.core.logging import get_logger
from system_model.core.timestamps import Clock, IdGenerator, epoch_seconds, generate_id
from system_model.entities import ChildKind
from system_model.providers import EntityStore, ProviderSet

logger = get_logger(__name__)


class Manager:
    """Holds the injected providers, identifier generator and clock."""

    def __init__(
        self,
        providers: ProviderSet,
        *,
        id_generator: IdGenerator = generate_id,
        clock: Clock = epoch_seconds,
    ) -> None:
        self.providers = providers
        self._new_id = id_generator
        self._now = clock

    def _require_organization(self, organization_id: str) -> None:
        if not self.providers.organizations.exists(organization_id):
            raise NotFoundError("organization not found").with_context(
                organization_id=organization_id,
                entity_kind="organization",
                entity_id=organization_id,
            )


class OrganizationChildManager(Manager):
    """Manager of one :class:`ChildKind` kept in the Organization Index."""

    child_kind: ClassVar[ChildKind]
    store_name: ClassVar[str]

    @property
    def store(self) -> EntityStore[Any]:
        return getattr(self.providers, self.store_name)

    def _not_in_index(self, organization_id: str, child_id: str) -> NotFoundError:
        return NotFoundError(f"{self.child_kind.value} not found").with_context(
            organization_id=organization_id,
            entity_kind=self.child_kind.value,
            entity_id=child_id,
        )

    def _require_child(self, organization_id: str, child_id: str) -> None:
        self._require_organization(organization_id)
        if not self.providers.organizations.child_exists(self.child_kind, organization_id, child_id):
            raise self._not_in_index(organization_id, child_id)

    def _lookup(self, organization_id: str, child_id: str) -> Any:
        self._require_child(organization_id, child_id)
        return self.store.get(child_id)

    def _list(self, organization_id: str) -> list[Any]:
        entities = []
        for child_id in self.providers.organizations.list_children(self.child_kind, organization_id):
            try:
                entities.append(self.store.get(child_id))
            except NotFoundError:
                # Indexed but not stored: a remove is in flight or its index step failed.
                logger.warning(
                    "dangling_index_entry",
                    organization_id=organization_id,
                    entity_kind=self.child_kind.value,
                    entity_id=child_id,
                )
        return entities

    def _register(self, operation: str, organization_id: str, child_id: str, entity: Any) -> None:
        store = self.store
        organizations = self.providers.organizations
        DualWrite(
            operation=operation,
            primary=lambda: store.add(entity),
            secondary=lambda: organizations.add_child(self.child_kind, organization_id, child_id),
            compensate=lambda: store.remove(child_id),
            context={"organization_id": organization_id, "entity_id": child_id},
        ).run()

    def _unregister_store_first(self, operation: str, organization_id: str, child_id: str) -> Any:
        """Delete the entity, then its index entry. Returns the removed entity."""
        store = self.store
        organizations = self.providers.organizations
        self._require_child(organization_id, child_id)
        previous = store.get(child_id)
        DualWrite(
            operation=operation,
            primary=lambda: store.remove(child_id),
            secondary=lambda: organizations.delete_child(self.child_kind, organization_id, child_id),
            compensate=lambda: store.add(copy.deepcopy(previous)),
            context={"organization_id": organization_id, "entity_id": child_id},
        ).run()
        return previous

    def _unregister_index_first(self, operation: str, organization_id: str, child_id: str) -> None:
        """Stop listing the entity, then delete it."""
        store = self.store
        organizations = self.providers.organizations
        self._require_child(organization_id, child_id)
        if not store.exists(child_id):
            raise self._not_in_index(organization_id, child_id)
        DualWrite(
            operation=operation,
            primary=lambda: organizations.delete_child(self.child_kind, organization_id, child_id),
            secondary=lambda: store.remove(child_id),
            compensate=lambda: organizations.add_child(self.child_kind, organization_id, child_id),
            context={"organization_id": organization_id, "entity_id": child_id},
        ).run()
