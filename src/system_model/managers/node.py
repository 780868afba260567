"""
Node manager.

A node is registered in its organization unattached and is later attached
to one cluster of the same organization. Attachment is recorded twice, in
the cluster membership index and in the node's own ``cluster_id``, and
both writes go through :class:`DualWrite`:

    Attach:   membership → node store          (undo: delete membership)
    Remove:   membership → node store → index  (undo: re-add, in reverse)
"""

from __future__ import annotations

import copy

from system_model.core.compensation import DualWrite
from system_model.core.errors import FailedPreconditionError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import ChildKind, Node, NodeState, NodeStatus
from system_model.managers.base import OrganizationChildManager
from system_model.requests import AddNodeRequest, UpdateNodeRequest
from system_model.validation import require_ids, validate_add_node, validate_update_node

logger = get_logger(__name__)


class NodeManager(OrganizationChildManager):
    child_kind = ChildKind.NODE
    store_name = "nodes"

    def add_node(self, request: AddNodeRequest) -> Node:
        validate_add_node(request)
        self._require_organization(request.organization_id)
        node = Node(
            organization_id=request.organization_id,
            node_id=self._new_id(),
            ip=request.ip,
            labels=dict(request.labels),
            status=NodeStatus.UNKNOWN,
            state=NodeState.UNREGISTERED,
        )
        self._register("add_node", node.organization_id, node.node_id, node)
        logger.info("node_added", organization_id=node.organization_id, node_id=node.node_id)
        return node

    def get_node(self, organization_id: str, node_id: str) -> Node:
        require_ids(organization_id=organization_id, node_id=node_id)
        return self._lookup(organization_id, node_id)

    def list_nodes(self, organization_id: str) -> list[Node]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def update_node(self, request: UpdateNodeRequest) -> Node:
        validate_update_node(request)
        node: Node = self._lookup(request.organization_id, request.node_id)
        node.labels.update(request.add_labels)
        for key in request.remove_labels:
            node.labels.pop(key, None)
        if request.status is not None:
            node.status = request.status
        if request.state is not None:
            node.state = request.state
        self.store.update(node)
        logger.debug("node_updated", organization_id=node.organization_id, node_id=node.node_id)
        return node

    # ------------------------------------------------------------------ #
    # Cluster membership
    # ------------------------------------------------------------------ #

    def _require_cluster(self, organization_id: str, cluster_id: str) -> None:
        self._require_organization(organization_id)
        if not self.providers.organizations.child_exists(ChildKind.CLUSTER, organization_id, cluster_id):
            raise NotFoundError("cluster not found").with_context(
                organization_id=organization_id, entity_kind="cluster", entity_id=cluster_id
            )

    def attach_node(self, organization_id: str, cluster_id: str, node_id: str) -> Node:
        """Attach a node to a cluster. Attaching it again to the same cluster is a no-op."""
        require_ids(organization_id=organization_id, cluster_id=cluster_id, node_id=node_id)
        self._require_cluster(organization_id, cluster_id)
        node: Node = self._lookup(organization_id, node_id)
        if node.cluster_id == cluster_id:
            return node
        if node.cluster_id:
            raise FailedPreconditionError("node is attached to another cluster").with_context(
                organization_id=organization_id,
                entity_kind="node",
                entity_id=node_id,
                cluster_id=node.cluster_id,
                operation="attach_node",
            )
        attached = copy.deepcopy(node)
        attached.cluster_id = cluster_id
        attached.state = NodeState.ASSIGNED
        members = self.providers.cluster_nodes
        nodes = self.store
        DualWrite(
            operation="attach_node",
            primary=lambda: members.add_member(cluster_id, node_id),
            secondary=lambda: nodes.update(attached),
            compensate=lambda: members.delete_member(cluster_id, node_id),
            context={"organization_id": organization_id, "cluster_id": cluster_id, "node_id": node_id},
        ).run()
        logger.info("node_attached", organization_id=organization_id, cluster_id=cluster_id, node_id=node_id)
        return attached

    def list_cluster_nodes(self, organization_id: str, cluster_id: str) -> list[Node]:
        require_ids(organization_id=organization_id, cluster_id=cluster_id)
        self._require_cluster(organization_id, cluster_id)
        nodes = []
        for node_id in self.providers.cluster_nodes.list_members(cluster_id):
            try:
                node = self.store.get(node_id)
            except NotFoundError:
                logger.warning(
                    "dangling_membership_entry",
                    organization_id=organization_id,
                    cluster_id=cluster_id,
                    node_id=node_id,
                )
                continue
            nodes.append(node)
        return nodes

    def remove_node(self, organization_id: str, node_id: str) -> None:
        require_ids(organization_id=organization_id, node_id=node_id)
        node: Node = self._lookup(organization_id, node_id)
        if not node.cluster_id:
            self._unregister_store_first("remove_node", organization_id, node_id)
        else:
            members = self.providers.cluster_nodes
            cluster_id = node.cluster_id
            DualWrite(
                operation="remove_node",
                primary=lambda: members.delete_member(cluster_id, node_id),
                secondary=lambda: self._unregister_store_first("remove_node", organization_id, node_id),
                compensate=lambda: members.add_member(cluster_id, node_id),
                context={"organization_id": organization_id, "cluster_id": cluster_id, "node_id": node_id},
            ).run()
        logger.info("node_removed", organization_id=organization_id, node_id=node_id)
