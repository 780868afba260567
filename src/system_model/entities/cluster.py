"""
Cluster entity and its health/cordon state machine.

The exposed status is one of five values, but it is stored as two
orthogonal components: ``health`` (unknown/online/offline) and the
``cordon`` bit. Health reports only touch ``health``; cordon and uncordon
only touch ``cordon``. This keeps a health transition that arrives while a
cluster is cordoned inside the cordoned super-state.

Unknown health hides the cordon bit: a cordoned cluster whose monitoring
report turns unknown is exposed as UNKNOWN, but the bit is kept and the
cordoned status comes back with the next online or offline report. While
the status is UNKNOWN the cluster can be neither cordoned nor uncordoned.

Transitions::

    Cordon                         Uncordon
    ONLINE         → ONLINE_CORDON  ONLINE_CORDON  → ONLINE
    OFFLINE        → OFFLINE_CORDON OFFLINE_CORDON → OFFLINE
    ONLINE_CORDON  → (no-op)        ONLINE         → (no-op)
    OFFLINE_CORDON → (no-op)        OFFLINE        → (no-op)
    UNKNOWN        → FailedPrecondition for both

Tags:
    cluster, state-machine, cordon, system-model
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from system_model.core.errors import FailedPreconditionError


class ClusterHealth(str, Enum):
    """Power component reported by cluster monitoring."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class ClusterStatus(str, Enum):
    """Exposed status of a cluster."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"
    ONLINE_CORDON = "online_cordon"
    OFFLINE_CORDON = "offline_cordon"


class ClusterType(str, Enum):
    KUBERNETES = "kubernetes"
    DOCKER_NODE = "docker_node"


class MultitenantSupport(str, Enum):
    YES = "yes"
    NO = "no"


class ClusterState(str, Enum):
    """Provisioning state of the cluster, independent of its health."""

    PROVISIONING = "provisioning"
    INSTALL_IN_PROGRESS = "install_in_progress"
    INSTALLED = "installed"
    SCALING = "scaling"
    FAILURE = "failure"
    UNINSTALLING = "uninstalling"
    DECOMMISSIONING = "decommissioning"


# (health, cordon) -> exposed status. A cordoned cluster with unknown
# health is still reported as UNKNOWN.
STATUS_OF: dict[tuple[ClusterHealth, bool], ClusterStatus] = {
    (ClusterHealth.UNKNOWN, False): ClusterStatus.UNKNOWN,
    (ClusterHealth.UNKNOWN, True): ClusterStatus.UNKNOWN,
    (ClusterHealth.ONLINE, False): ClusterStatus.ONLINE,
    (ClusterHealth.ONLINE, True): ClusterStatus.ONLINE_CORDON,
    (ClusterHealth.OFFLINE, False): ClusterStatus.OFFLINE,
    (ClusterHealth.OFFLINE, True): ClusterStatus.OFFLINE_CORDON,
}

CORDON_TRANSITIONS: dict[ClusterStatus, ClusterStatus] = {
    ClusterStatus.ONLINE: ClusterStatus.ONLINE_CORDON,
    ClusterStatus.OFFLINE: ClusterStatus.OFFLINE_CORDON,
    ClusterStatus.ONLINE_CORDON: ClusterStatus.ONLINE_CORDON,
    ClusterStatus.OFFLINE_CORDON: ClusterStatus.OFFLINE_CORDON,
}

UNCORDON_TRANSITIONS: dict[ClusterStatus, ClusterStatus] = {
    ClusterStatus.ONLINE_CORDON: ClusterStatus.ONLINE,
    ClusterStatus.OFFLINE_CORDON: ClusterStatus.OFFLINE,
    ClusterStatus.ONLINE: ClusterStatus.ONLINE,
    ClusterStatus.OFFLINE: ClusterStatus.OFFLINE,
}

_COMPONENTS_OF: dict[ClusterStatus, tuple[ClusterHealth, bool]] = {
    ClusterStatus.UNKNOWN: (ClusterHealth.UNKNOWN, False),
    ClusterStatus.ONLINE: (ClusterHealth.ONLINE, False),
    ClusterStatus.OFFLINE: (ClusterHealth.OFFLINE, False),
    ClusterStatus.ONLINE_CORDON: (ClusterHealth.ONLINE, True),
    ClusterStatus.OFFLINE_CORDON: (ClusterHealth.OFFLINE, True),
}


@dataclass
class ClusterWatchInfo:
    """Connectivity information shared between clusters of an organization."""

    name: str = ""
    organization_id: str = ""
    cluster_id: str = ""
    ip: str = ""
    port: int = 0


@dataclass
class Cluster:
    """Registered cluster.

    ``cordon`` is stored even while ``health`` is unknown; :attr:`status`
    then reads UNKNOWN and uncordon is refused until health is reported.
    """

    organization_id: str = ""
    cluster_id: str = ""
    name: str = ""
    cluster_type: ClusterType = ClusterType.KUBERNETES
    hostname: str = ""
    control_plane_hostname: str = ""
    multitenant: MultitenantSupport = MultitenantSupport.YES
    health: ClusterHealth = ClusterHealth.UNKNOWN
    cordon: bool = False
    labels: dict[str, str] = field(default_factory=dict)
    cluster_watch: ClusterWatchInfo = field(default_factory=ClusterWatchInfo)
    last_alive_timestamp: int = 0
    state: ClusterState = ClusterState.PROVISIONING

    @property
    def status(self) -> ClusterStatus:
        return STATUS_OF[(self.health, self.cordon)]

    def _apply(self, table: dict[ClusterStatus, ClusterStatus], action: str) -> bool:
        current = self.status
        target = table.get(current)
        if target is None:
            raise FailedPreconditionError(
                f"cannot {action} a cluster in status {current.value}"
            ).with_context(
                organization_id=self.organization_id,
                entity_kind="cluster",
                entity_id=self.cluster_id,
                operation=action,
            )
        if target == current:
            return False
        self.health, self.cordon = _COMPONENTS_OF[target]
        return True

    def apply_cordon(self) -> bool:
        """Move into the cordoned super-state. Returns ``False`` on a no-op."""
        return self._apply(CORDON_TRANSITIONS, "cordon")

    def apply_uncordon(self) -> bool:
        """Leave the cordoned super-state. Returns ``False`` on a no-op."""
        return self._apply(UNCORDON_TRANSITIONS, "uncordon")

    def report_health(self, health: ClusterHealth) -> None:
        """Record a monitoring report; the cordon bit is never touched."""
        self.health = health
