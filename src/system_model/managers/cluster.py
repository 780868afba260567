"""
Cluster manager.

Clusters follow the two-write protocol like every organization child, and
their status follows the health/cordon state machine defined on
:class:`~system_model.entities.Cluster`. Removal is index first: a cluster
stops being listed before its record is deleted, and a failed delete puts
the index entry back. A cluster with nodes attached can't be removed.
"""

from __future__ import annotations

from system_model.core.errors import FailedPreconditionError
from system_model.core.logging import get_logger
from system_model.entities import ChildKind, Cluster, ClusterState
from system_model.managers.base import OrganizationChildManager
from system_model.requests import AddClusterRequest, UpdateClusterRequest
from system_model.validation import require_ids, validate_add_cluster, validate_update_cluster

logger = get_logger(__name__)


class ClusterManager(OrganizationChildManager):
    child_kind = ChildKind.CLUSTER
    store_name = "clusters"

    def add_cluster(self, request: AddClusterRequest) -> Cluster:
        validate_add_cluster(request)
        self._require_organization(request.organization_id)
        cluster = Cluster(
            organization_id=request.organization_id,
            cluster_id=self._new_id(),
            name=request.name,
            cluster_type=request.cluster_type,
            hostname=request.hostname,
            control_plane_hostname=request.control_plane_hostname,
            multitenant=request.multitenant,
            labels=dict(request.labels),
            state=ClusterState.PROVISIONING,
        )
        self._register("add_cluster", cluster.organization_id, cluster.cluster_id, cluster)
        logger.info("cluster_added", organization_id=cluster.organization_id, cluster_id=cluster.cluster_id)
        return cluster

    def get_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        require_ids(organization_id=organization_id, cluster_id=cluster_id)
        return self._lookup(organization_id, cluster_id)

    def list_clusters(self, organization_id: str) -> list[Cluster]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def update_cluster(self, request: UpdateClusterRequest) -> Cluster:
        """Apply the fields present in *request*.

        A health report changes only the power component; a cordoned
        cluster stays cordoned.
        """
        validate_update_cluster(request)
        cluster: Cluster = self._lookup(request.organization_id, request.cluster_id)
        if request.name is not None:
            cluster.name = request.name
        if request.hostname is not None:
            cluster.hostname = request.hostname
        if request.control_plane_hostname is not None:
            cluster.control_plane_hostname = request.control_plane_hostname
        cluster.labels.update(request.add_labels)
        for key in request.remove_labels:
            cluster.labels.pop(key, None)
        if request.health is not None:
            cluster.report_health(request.health)
        if request.cluster_watch is not None:
            cluster.cluster_watch = request.cluster_watch
        if request.last_alive_timestamp is not None:
            cluster.last_alive_timestamp = request.last_alive_timestamp
        if request.state is not None:
            cluster.state = request.state
        self.store.update(cluster)
        logger.debug(
            "cluster_updated",
            organization_id=cluster.organization_id,
            cluster_id=cluster.cluster_id,
            status=cluster.status.value,
        )
        return cluster

    def remove_cluster(self, organization_id: str, cluster_id: str) -> None:
        """Remove a cluster. Refused while nodes are attached to it."""
        require_ids(organization_id=organization_id, cluster_id=cluster_id)
        self._require_child(organization_id, cluster_id)
        if self.providers.cluster_nodes.list_members(cluster_id):
            raise FailedPreconditionError("cluster still has nodes attached").with_context(
                organization_id=organization_id,
                entity_kind="cluster",
                entity_id=cluster_id,
                operation="remove_cluster",
            )
        self._unregister_index_first("remove_cluster", organization_id, cluster_id)
        logger.info("cluster_removed", organization_id=organization_id, cluster_id=cluster_id)

    def cordon_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        """Cordon a cluster. Already cordoned is a successful no-op."""
        return self._transition(organization_id, cluster_id, cordon=True)

    def uncordon_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        """Uncordon a cluster. Not cordoned is a successful no-op."""
        return self._transition(organization_id, cluster_id, cordon=False)

    def _transition(self, organization_id: str, cluster_id: str, *, cordon: bool) -> Cluster:
        require_ids(organization_id=organization_id, cluster_id=cluster_id)
        cluster: Cluster = self._lookup(organization_id, cluster_id)
        changed = cluster.apply_cordon() if cordon else cluster.apply_uncordon()
        if changed:
            self.store.update(cluster)
        logger.info(
            "cluster_cordoned" if cordon else "cluster_uncordoned",
            organization_id=organization_id,
            cluster_id=cluster_id,
            status=cluster.status.value,
            changed=changed,
        )
        return cluster
