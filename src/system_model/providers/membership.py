"""
Cluster membership: which nodes are attached to which cluster.

Kept apart from both the node store and the Organization Index. The node
manager moves a node in or out of a cluster with a
:class:`~system_model.core.compensation.DualWrite` over this index and the
node store.

Semantics:
    - ``add_member``: ``AlreadyExistsError`` if the node is already attached
      to the cluster
    - ``list_members``: ``[]`` for a cluster without nodes
    - ``delete_member``: ``NotFoundError`` if the node is not attached
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from sqlalchemy.orm import Session

from system_model.core.errors import AlreadyExistsError, NotFoundError
from system_model.core.orm.tables import ClusterNodeTable
from system_model.providers.sql import SQLProvider

CLUSTER_NODES_TABLE = ClusterNodeTable.__tablename__


@runtime_checkable
class MembershipIndex(Protocol):
    def add_member(self, cluster_id: str, node_id: str) -> None: ...

    def member_exists(self, cluster_id: str, node_id: str) -> bool: ...

    def list_members(self, cluster_id: str) -> list[str]: ...

    def delete_member(self, cluster_id: str, node_id: str) -> None: ...

    def clear(self) -> None: ...


def _member_not_found(cluster_id: str, node_id: str) -> NotFoundError:
    return NotFoundError("node not attached to cluster").with_context(
        cluster_id=cluster_id, entity_kind="node", entity_id=node_id
    )


def _member_already_exists(cluster_id: str, node_id: str) -> AlreadyExistsError:
    return AlreadyExistsError("node already attached to cluster").with_context(
        cluster_id=cluster_id, entity_kind="node", entity_id=node_id
    )


class MemoryMembershipIndex:
    def __init__(self) -> None:
        self._members: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def add_member(self, cluster_id: str, node_id: str) -> None:
        with self._lock:
            members = self._members.setdefault(cluster_id, set())
            if node_id in members:
                raise _member_already_exists(cluster_id, node_id)
            members.add(node_id)

    def member_exists(self, cluster_id: str, node_id: str) -> bool:
        with self._lock:
            return node_id in self._members.get(cluster_id, ())

    def list_members(self, cluster_id: str) -> list[str]:
        with self._lock:
            return sorted(self._members.get(cluster_id, ()))

    def delete_member(self, cluster_id: str, node_id: str) -> None:
        with self._lock:
            members = self._members.get(cluster_id)
            if not members or node_id not in members:
                raise _member_not_found(cluster_id, node_id)
            members.discard(node_id)

    def clear(self) -> None:
        with self._lock:
            self._members.clear()


class SQLMembershipIndex(SQLProvider):
    kind = "cluster_node"

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add_member(self, cluster_id: str, node_id: str) -> None:
        with self._transaction("add_member") as repo:
            if self._exists(repo, cluster_id, node_id):
                raise _member_already_exists(cluster_id, node_id)
            repo.insert(CLUSTER_NODES_TABLE, {"cluster_id": cluster_id, "node_id": node_id})

    @staticmethod
    def _exists(repo, cluster_id: str, node_id: str) -> bool:
        return (
            repo.scalar(
                f"SELECT 1 FROM {CLUSTER_NODES_TABLE} WHERE cluster_id = {repo.ph(1)} AND node_id = {repo.ph(1)}",
                (cluster_id, node_id),
            )
            is not None
        )

    def member_exists(self, cluster_id: str, node_id: str) -> bool:
        with self._transaction("member_exists") as repo:
            return self._exists(repo, cluster_id, node_id)

    def list_members(self, cluster_id: str) -> list[str]:
        with self._transaction("list_members") as repo:
            rows = repo.query(
                f"SELECT node_id FROM {CLUSTER_NODES_TABLE} WHERE cluster_id = {repo.ph(1)} ORDER BY node_id",
                (cluster_id,),
            )
        return [row["node_id"] for row in rows]

    def delete_member(self, cluster_id: str, node_id: str) -> None:
        with self._transaction("delete_member") as repo:
            cursor = repo.execute(
                f"DELETE FROM {CLUSTER_NODES_TABLE} WHERE cluster_id = {repo.ph(1)} AND node_id = {repo.ph(1)}",
                (cluster_id, node_id),
            )
            if cursor.rowcount == 0:
                raise _member_not_found(cluster_id, node_id)

    def clear(self) -> None:
        with self._transaction("clear") as repo:
            repo.execute(f"DELETE FROM {CLUSTER_NODES_TABLE}")
