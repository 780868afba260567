"""Plain dataclass entities of the system model."""

from system_model.entities.account import Account, AccountBillingInfo, AccountState, Project, ProjectState
from system_model.entities.application import (
    AppDescriptor,
    AppInstance,
    ApplicationStatus,
    CollocationPolicy,
    DeploySpecs,
    Endpoint,
    EndpointInstance,
    EndpointType,
    InboundNetworkInterface,
    InstanceMetadata,
    InstanceParameter,
    InstanceParameters,
    OutboundNetworkInterface,
    ParametrizedDescriptor,
    Port,
    PortAccess,
    SecurityRule,
    Service,
    ServiceGroup,
    ServiceGroupDeploymentSpecs,
    ServiceGroupInstance,
    ServiceInstance,
    ServiceStatus,
    ServiceType,
    Storage,
    StorageType,
)
from system_model.entities.cluster import (
    Cluster,
    ClusterHealth,
    ClusterState,
    ClusterStatus,
    ClusterType,
    ClusterWatchInfo,
    MultitenantSupport,
)
from system_model.entities.device import Device, DeviceGroup
from system_model.entities.history import LogResponse, ServiceInstanceLog
from system_model.entities.inventory import (
    Asset,
    EdgeController,
    Node,
    NodeState,
    NodeStatus,
    OperatingSystemInfo,
)
from system_model.entities.network import (
    ConnectionInstance,
    ConnectionInstanceLink,
    ConnectionStatus,
    ZTNetworkConnection,
    ZTNetworkSide,
)
from system_model.entities.organization import ChildKind, Organization, OrganizationSetting
from system_model.entities.user import AccountUser, Role, User, UserContactInfo, UserStatus

__all__ = [
    "Account",
    "AccountBillingInfo",
    "AccountState",
    "AccountUser",
    "AppDescriptor",
    "AppInstance",
    "ApplicationStatus",
    "Asset",
    "ChildKind",
    "Cluster",
    "ClusterHealth",
    "ClusterState",
    "ClusterStatus",
    "ClusterType",
    "ClusterWatchInfo",
    "CollocationPolicy",
    "ConnectionInstance",
    "ConnectionInstanceLink",
    "ConnectionStatus",
    "DeploySpecs",
    "Device",
    "DeviceGroup",
    "EdgeController",
    "Endpoint",
    "EndpointInstance",
    "EndpointType",
    "InboundNetworkInterface",
    "InstanceMetadata",
    "InstanceParameter",
    "InstanceParameters",
    "LogResponse",
    "MultitenantSupport",
    "Node",
    "NodeState",
    "NodeStatus",
    "OperatingSystemInfo",
    "Organization",
    "OrganizationSetting",
    "OutboundNetworkInterface",
    "ParametrizedDescriptor",
    "Port",
    "PortAccess",
    "Project",
    "ProjectState",
    "Role",
    "SecurityRule",
    "Service",
    "ServiceGroup",
    "ServiceGroupDeploymentSpecs",
    "ServiceGroupInstance",
    "ServiceInstance",
    "ServiceInstanceLog",
    "ServiceStatus",
    "ServiceType",
    "Storage",
    "StorageType",
    "User",
    "UserContactInfo",
    "UserStatus",
    "ZTNetworkConnection",
    "ZTNetworkSide",
]
