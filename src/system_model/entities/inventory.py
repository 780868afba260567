"""Infrastructure inventory: cluster nodes, edge controllers and their assets."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeStatus(str, Enum):
    UNKNOWN = "unknown"
    READY = "ready"
    PROCESSING = "processing"
    ERROR = "error"


class NodeState(str, Enum):
    UNREGISTERED = "unregistered"
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


@dataclass
class Node:
    organization_id: str = ""
    cluster_id: str = ""
    node_id: str = ""
    ip: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    status: NodeStatus = NodeStatus.UNKNOWN
    state: NodeState = NodeState.UNREGISTERED


@dataclass
class OperatingSystemInfo:
    name: str = ""
    version: str = ""


@dataclass
class Asset:
    """A device running an agent, attached to an edge controller."""

    organization_id: str = ""
    edge_controller_id: str = ""
    asset_id: str = ""
    agent_id: str = ""
    show: bool = True
    created: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    os: OperatingSystemInfo = field(default_factory=OperatingSystemInfo)
    eic_net_ip: str = ""
    last_alive_timestamp: int = 0


@dataclass
class EdgeController:
    """Edge inventory controller; assets report through it.

    ``show`` is cleared while an asynchronous uninstall is in progress.
    """

    organization_id: str = ""
    edge_controller_id: str = ""
    name: str = ""
    show: bool = True
    created: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    last_alive_timestamp: int = 0
