"""
Application network: connections between application instances.

A connection joins an outbound interface of a source instance to an
inbound interface of a target instance of the same organization. Once
the platform wires a connection across clusters it records one
:class:`ConnectionInstanceLink` per (source cluster, target cluster)
pair; a connection can't be removed while links remain.

ZeroTier network connections record, per network, which service of which
instance joined it and on which cluster.

Tags:
    application-network, connection, zerotier, system-model
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConnectionStatus(str, Enum):
    WAITING = "waiting"
    ESTABLISHED = "established"
    TERMINATED = "terminated"
    FAILED = "failed"


class ZTNetworkSide(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass
class ConnectionInstance:
    organization_id: str = ""
    connection_id: str = ""
    source_instance_id: str = ""
    source_instance_name: str = ""
    target_instance_id: str = ""
    target_instance_name: str = ""
    inbound_name: str = ""
    outbound_name: str = ""
    outbound_required: bool = False
    status: ConnectionStatus = ConnectionStatus.WAITING
    ip_range: str = ""
    zt_network_id: str = ""


@dataclass
class ConnectionInstanceLink:
    organization_id: str = ""
    connection_id: str = ""
    source_instance_id: str = ""
    source_cluster_id: str = ""
    target_instance_id: str = ""
    target_cluster_id: str = ""
    inbound_name: str = ""
    outbound_name: str = ""


@dataclass
class ZTNetworkConnection:
    organization_id: str = ""
    zt_network_id: str = ""
    app_instance_id: str = ""
    service_id: str = ""
    cluster_id: str = ""
    zt_member: str = ""
    zt_ip: str = ""
    side: ZTNetworkSide = ZTNetworkSide.OUTBOUND
