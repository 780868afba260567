"""
Organization records and the Organization Index.

The index keeps, per organization, the set of child identifiers of each
:class:`~system_model.entities.ChildKind`. It is a separate structure from
the entity stores; managers keep both in agreement through the two-write
protocol in :mod:`system_model.core.compensation`.

Index semantics (identical for every kind):
    - ``add_child``: ``NotFoundError`` if the organization is absent,
      ``AlreadyExistsError`` if the child is already registered
    - ``child_exists``: plain boolean
    - ``list_children``: ``NotFoundError`` if the organization is absent;
      an organization with no children yields ``[]``
    - ``delete_child``: ``NotFoundError`` if the child is not registered

Tags:
    organization, index, provider, system-model
"""

from __future__ import annotations

import copy
import threading
from typing import Protocol, runtime_checkable

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from system_model.core.errors import AlreadyExistsError, NotFoundError
from system_model.core.orm.tables import (
    OrganizationClusterTable,
    OrganizationDescriptorTable,
    OrganizationEdgeControllerTable,
    OrganizationInstanceTable,
    OrganizationNodeTable,
    OrganizationRoleTable,
    OrganizationTable,
    OrganizationUserTable,
)
from system_model.entities import ChildKind, Organization
from system_model.providers.sql import SQLProvider


@runtime_checkable
class OrganizationProvider(Protocol):
    def add(self, organization: Organization) -> None: ...

    def get(self, organization_id: str) -> Organization: ...

    def exists(self, organization_id: str) -> bool: ...

    def exists_by_name(self, name: str) -> bool: ...

    def list(self) -> list[Organization]: ...

    def update(self, organization: Organization) -> None: ...

    def add_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None: ...

    def child_exists(self, kind: ChildKind, organization_id: str, child_id: str) -> bool: ...

    def list_children(self, kind: ChildKind, organization_id: str) -> list[str]: ...

    def delete_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None: ...

    def clear(self) -> None: ...


def _organization_not_found(organization_id: str) -> NotFoundError:
    return NotFoundError("organization not found").with_context(
        organization_id=organization_id, entity_kind="organization", entity_id=organization_id
    )


def _child_not_found(kind: ChildKind, organization_id: str, child_id: str) -> NotFoundError:
    return NotFoundError(f"{kind.value} not found in organization").with_context(
        organization_id=organization_id, entity_kind=kind.value, entity_id=child_id
    )


def _child_already_exists(kind: ChildKind, organization_id: str, child_id: str) -> AlreadyExistsError:
    return AlreadyExistsError(f"{kind.value} already registered in organization").with_context(
        organization_id=organization_id, entity_kind=kind.value, entity_id=child_id
    )


# =============================================================================
# In-memory
# =============================================================================


class MemoryOrganizationProvider:
    def __init__(self) -> None:
        self._organizations: dict[str, Organization] = {}
        self._children: dict[str, dict[ChildKind, set[str]]] = {}
        self._lock = threading.Lock()

    def add(self, organization: Organization) -> None:
        with self._lock:
            if organization.organization_id in self._organizations:
                raise AlreadyExistsError("organization already exists").with_context(
                    organization_id=organization.organization_id
                )
            self._organizations[organization.organization_id] = copy.deepcopy(organization)
            self._children[organization.organization_id] = {kind: set() for kind in ChildKind}

    def get(self, organization_id: str) -> Organization:
        with self._lock:
            organization = self._organizations.get(organization_id)
            if organization is None:
                raise _organization_not_found(organization_id)
            return copy.deepcopy(organization)

    def exists(self, organization_id: str) -> bool:
        with self._lock:
            return organization_id in self._organizations

    def exists_by_name(self, name: str) -> bool:
        with self._lock:
            return any(org.name == name for org in self._organizations.values())

    def list(self) -> list[Organization]:
        with self._lock:
            return [copy.deepcopy(self._organizations[key]) for key in sorted(self._organizations)]

    def update(self, organization: Organization) -> None:
        with self._lock:
            if organization.organization_id not in self._organizations:
                raise _organization_not_found(organization.organization_id)
            self._organizations[organization.organization_id] = copy.deepcopy(organization)

    def add_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None:
        with self._lock:
            children = self._children.get(organization_id)
            if children is None:
                raise _organization_not_found(organization_id)
            if child_id in children[kind]:
                raise _child_already_exists(kind, organization_id, child_id)
            children[kind].add(child_id)

    def child_exists(self, kind: ChildKind, organization_id: str, child_id: str) -> bool:
        with self._lock:
            children = self._children.get(organization_id)
            return children is not None and child_id in children[kind]

    def list_children(self, kind: ChildKind, organization_id: str) -> list[str]:
        with self._lock:
            children = self._children.get(organization_id)
            if children is None:
                raise _organization_not_found(organization_id)
            return sorted(children[kind])

    def delete_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None:
        with self._lock:
            children = self._children.get(organization_id)
            if children is None or child_id not in children[kind]:
                raise _child_not_found(kind, organization_id, child_id)
            children[kind].discard(child_id)

    def clear(self) -> None:
        with self._lock:
            self._organizations.clear()
            self._children.clear()


# =============================================================================
# SQL
# =============================================================================

CHILD_TABLES: dict[ChildKind, str] = {
    ChildKind.CLUSTER: OrganizationClusterTable.__tablename__,
    ChildKind.NODE: OrganizationNodeTable.__tablename__,
    ChildKind.DESCRIPTOR: OrganizationDescriptorTable.__tablename__,
    ChildKind.INSTANCE: OrganizationInstanceTable.__tablename__,
    ChildKind.USER: OrganizationUserTable.__tablename__,
    ChildKind.ROLE: OrganizationRoleTable.__tablename__,
    ChildKind.EDGE_CONTROLLER: OrganizationEdgeControllerTable.__tablename__,
}

ORGANIZATIONS_TABLE = OrganizationTable.__tablename__

_organization_adapter = TypeAdapter(Organization)


class SQLOrganizationProvider(SQLProvider):
    kind = "organization"

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    @staticmethod
    def _exists(repo, organization_id: str) -> bool:
        return (
            repo.scalar(
                f"SELECT 1 FROM {ORGANIZATIONS_TABLE} WHERE id = {repo.ph(1)}",
                (organization_id,),
            )
            is not None
        )

    def add(self, organization: Organization) -> None:
        with self._transaction("add") as repo:
            if self._exists(repo, organization.organization_id):
                raise AlreadyExistsError("organization already exists").with_context(
                    organization_id=organization.organization_id
                )
            repo.insert(
                ORGANIZATIONS_TABLE,
                {
                    "id": organization.organization_id,
                    "name": organization.name,
                    "created": organization.created,
                    "document": _organization_adapter.dump_json(organization).decode("utf-8"),
                },
            )

    def get(self, organization_id: str) -> Organization:
        with self._transaction("get") as repo:
            row = repo.query_one(
                f"SELECT document FROM {ORGANIZATIONS_TABLE} WHERE id = {repo.ph(1)}",
                (organization_id,),
            )
        if row is None:
            raise _organization_not_found(organization_id)
        return _organization_adapter.validate_json(row["document"])

    def exists(self, organization_id: str) -> bool:
        with self._transaction("exists") as repo:
            return self._exists(repo, organization_id)

    def exists_by_name(self, name: str) -> bool:
        with self._transaction("exists_by_name") as repo:
            return (
                repo.scalar(f"SELECT 1 FROM {ORGANIZATIONS_TABLE} WHERE name = {repo.ph(1)}", (name,))
                is not None
            )

    def list(self) -> list[Organization]:
        with self._transaction("list") as repo:
            rows = repo.query(f"SELECT document FROM {ORGANIZATIONS_TABLE} ORDER BY id")
        return [_organization_adapter.validate_json(row["document"]) for row in rows]

    def update(self, organization: Organization) -> None:
        with self._transaction("update") as repo:
            cursor = repo.execute(
                f"UPDATE {ORGANIZATIONS_TABLE} SET name = {repo.ph(1)}, document = {repo.ph(1)} "
                f"WHERE id = {repo.ph(1)}",
                (
                    organization.name,
                    _organization_adapter.dump_json(organization).decode("utf-8"),
                    organization.organization_id,
                ),
            )
            if cursor.rowcount == 0:
                raise _organization_not_found(organization.organization_id)

    # -- index -------------------------------------------------------------

    def add_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None:
        table = CHILD_TABLES[kind]
        with self._transaction(f"add_{kind.value}") as repo:
            if not self._exists(repo, organization_id):
                raise _organization_not_found(organization_id)
            present = repo.scalar(
                f"SELECT 1 FROM {table} WHERE organization_id = {repo.ph(1)} AND child_id = {repo.ph(1)}",
                (organization_id, child_id),
            )
            if present is not None:
                raise _child_already_exists(kind, organization_id, child_id)
            repo.insert(table, {"organization_id": organization_id, "child_id": child_id})

    def child_exists(self, kind: ChildKind, organization_id: str, child_id: str) -> bool:
        table = CHILD_TABLES[kind]
        with self._transaction(f"{kind.value}_exists") as repo:
            return (
                repo.scalar(
                    f"SELECT 1 FROM {table} WHERE organization_id = {repo.ph(1)} AND child_id = {repo.ph(1)}",
                    (organization_id, child_id),
                )
                is not None
            )

    def list_children(self, kind: ChildKind, organization_id: str) -> list[str]:
        table = CHILD_TABLES[kind]
        with self._transaction(f"list_{kind.value}s") as repo:
            if not self._exists(repo, organization_id):
                raise _organization_not_found(organization_id)
            rows = repo.query(
                f"SELECT child_id FROM {table} WHERE organization_id = {repo.ph(1)} ORDER BY child_id",
                (organization_id,),
            )
        return [row["child_id"] for row in rows]

    def delete_child(self, kind: ChildKind, organization_id: str, child_id: str) -> None:
        table = CHILD_TABLES[kind]
        with self._transaction(f"delete_{kind.value}") as repo:
            cursor = repo.execute(
                f"DELETE FROM {table} WHERE organization_id = {repo.ph(1)} AND child_id = {repo.ph(1)}",
                (organization_id, child_id),
            )
            if cursor.rowcount == 0:
                raise _child_not_found(kind, organization_id, child_id)

    def clear(self) -> None:
        with self._transaction("clear") as repo:
            for table in CHILD_TABLES.values():
                repo.execute(f"DELETE FROM {table}")
            repo.execute(f"DELETE FROM {ORGANIZATIONS_TABLE}")
