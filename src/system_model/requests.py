"""
Typed request objects for manager operations.

Each dataclass represents the *input* contract for a single mutating
operation. Requests carry only transport-agnostic data; a transport layer
builds them from its own wire messages. Point lookups (``get_*``,
``remove_*``, ``cordon_cluster``...) take plain identifiers instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from system_model.entities import (
    AccountBillingInfo,
    AccountState,
    ApplicationStatus,
    ClusterHealth,
    ClusterState,
    ClusterType,
    ClusterWatchInfo,
    ConnectionStatus,
    EndpointInstance,
    InboundNetworkInterface,
    InstanceParameter,
    MultitenantSupport,
    NodeState,
    NodeStatus,
    OperatingSystemInfo,
    OutboundNetworkInterface,
    ProjectState,
    SecurityRule,
    ServiceGroup,
    ServiceStatus,
    UserStatus,
    ZTNetworkSide,
)

# ------------------------------------------------------------------ #
# Organizations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddOrganizationRequest:
    """Request for :meth:`OrganizationManager.add_organization`."""

    name: str = ""
    email: str = ""
    full_address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""
    photo_base64: str = ""


@dataclass(frozen=True, slots=True)
class UpdateOrganizationRequest:
    """Request for :meth:`OrganizationManager.update_organization`.

    ``None`` leaves a field unchanged.
    """

    organization_id: str = ""
    name: str | None = None
    email: str | None = None
    full_address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip_code: str | None = None
    photo_base64: str | None = None


# ------------------------------------------------------------------ #
# Clusters
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddClusterRequest:
    """Request for :meth:`ClusterManager.add_cluster`.

    ``cluster_id`` is generated by the registry and must be left empty.
    """

    organization_id: str = ""
    cluster_id: str = ""
    name: str = ""
    hostname: str = ""
    control_plane_hostname: str = ""
    cluster_type: ClusterType = ClusterType.KUBERNETES
    multitenant: MultitenantSupport = MultitenantSupport.YES
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateClusterRequest:
    """Request for :meth:`ClusterManager.update_cluster`.

    Attributes:
        add_labels: Labels to set (overwrites existing keys).
        remove_labels: Label keys to drop.
        health: Health report from monitoring; never touches the cordon bit.
        state: Provisioning state.
    """

    organization_id: str = ""
    cluster_id: str = ""
    name: str | None = None
    hostname: str | None = None
    control_plane_hostname: str | None = None
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)
    health: ClusterHealth | None = None
    cluster_watch: ClusterWatchInfo | None = None
    last_alive_timestamp: int | None = None
    state: ClusterState | None = None


# ------------------------------------------------------------------ #
# Nodes, users, roles
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddNodeRequest:
    """Request for :meth:`NodeManager.add_node`.

    Nodes start unattached; :meth:`NodeManager.attach_node` places them in a
    cluster.
    """

    organization_id: str = ""
    ip: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateNodeRequest:
    """Request for :meth:`NodeManager.update_node`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    node_id: str = ""
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)
    status: NodeStatus | None = None
    state: NodeState | None = None


@dataclass(frozen=True, slots=True)
class AddUserRequest:
    """Request for :meth:`UserManager.add_user`."""

    organization_id: str = ""
    email: str = ""
    name: str = ""
    photo_url: str = ""


@dataclass(frozen=True, slots=True)
class UpdateUserRequest:
    """Request for :meth:`UserManager.update_user`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    email: str = ""
    name: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateContactInfoRequest:
    """Request for :meth:`UserManager.update_contact_info`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    email: str = ""
    full_name: str | None = None
    address: str | None = None
    phone: dict[str, str] | None = None
    alt_email: str | None = None
    company_name: str | None = None
    title: str | None = None


@dataclass(frozen=True, slots=True)
class AddRoleRequest:
    """Request for :meth:`RoleManager.add_role`."""

    organization_id: str = ""
    name: str = ""
    description: str = ""
    internal: bool = False


# ------------------------------------------------------------------ #
# Applications
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddAppDescriptorRequest:
    """Request for :meth:`ApplicationManager.add_descriptor`.

    Group, service and rule identifiers left empty are generated.
    """

    organization_id: str = ""
    name: str = ""
    configuration_options: dict[str, str] = field(default_factory=dict)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    rules: list[SecurityRule] = field(default_factory=list)
    groups: list[ServiceGroup] = field(default_factory=list)
    inbound_net_interfaces: list[InboundNetworkInterface] = field(default_factory=list)
    outbound_net_interfaces: list[OutboundNetworkInterface] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UpdateAppDescriptorRequest:
    """Request for :meth:`ApplicationManager.update_descriptor`.

    Existing instances and their parametrized snapshots are never touched.
    """

    organization_id: str = ""
    app_descriptor_id: str = ""
    name: str | None = None
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)
    configuration_options: dict[str, str] | None = None
    environment_variables: dict[str, str] | None = None
    groups: list[ServiceGroup] | None = None


@dataclass(frozen=True, slots=True)
class AddAppInstanceRequest:
    """Request for :meth:`ApplicationManager.add_instance`."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    name: str = ""
    parameters: list[InstanceParameter] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AddServiceGroupInstancesRequest:
    """Request for :meth:`ApplicationManager.add_service_group_instances`."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    num_instances: int = 1


@dataclass(frozen=True, slots=True)
class AddServiceInstanceRequest:
    """Request for :meth:`ApplicationManager.add_service_instance`."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    service_group_instance_id: str = ""
    service_id: str = ""


@dataclass(frozen=True, slots=True)
class UpdateServiceStatusRequest:
    """Request for :meth:`ApplicationManager.update_service_status`."""

    organization_id: str = ""
    app_instance_id: str = ""
    service_group_instance_id: str = ""
    service_instance_id: str = ""
    status: ServiceStatus = ServiceStatus.SCHEDULED
    endpoints: list[EndpointInstance] = field(default_factory=list)
    deployed_on_cluster_id: str = ""
    info: str = ""


@dataclass(frozen=True, slots=True)
class UpdateAppStatusRequest:
    """Request for :meth:`ApplicationManager.update_instance_status`."""

    organization_id: str = ""
    app_instance_id: str = ""
    status: ApplicationStatus = ApplicationStatus.DEPLOYING
    info: str = ""


# ------------------------------------------------------------------ #
# Devices
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddDeviceGroupRequest:
    """Request for :meth:`DeviceManager.add_device_group`."""

    organization_id: str = ""
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AddDeviceRequest:
    """Request for :meth:`DeviceManager.add_device`.

    Device identifiers are chosen by the device itself.
    """

    organization_id: str = ""
    device_group_id: str = ""
    device_id: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateDeviceRequest:
    """Request for :meth:`DeviceManager.update_device`."""

    organization_id: str = ""
    device_group_id: str = ""
    device_id: str = ""
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)


# ------------------------------------------------------------------ #
# Assets
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddAssetRequest:
    """Request for :meth:`AssetManager.add_asset`."""

    organization_id: str = ""
    edge_controller_id: str = ""
    agent_id: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    os: OperatingSystemInfo = field(default_factory=OperatingSystemInfo)


@dataclass(frozen=True, slots=True)
class UpdateAssetRequest:
    """Request for :meth:`AssetManager.update_asset`."""

    organization_id: str = ""
    asset_id: str = ""
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)
    last_alive_timestamp: int | None = None


# ------------------------------------------------------------------ #
# Accounts and projects
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddAccountRequest:
    """Request for :meth:`AccountManager.add_account`."""

    name: str = ""
    billing_info: AccountBillingInfo = field(default_factory=AccountBillingInfo)


@dataclass(frozen=True, slots=True)
class UpdateAccountRequest:
    """Request for :meth:`AccountManager.update_account`."""

    account_id: str = ""
    name: str | None = None
    billing_info: AccountBillingInfo | None = None
    state: AccountState | None = None
    state_info: str | None = None


@dataclass(frozen=True, slots=True)
class AddProjectRequest:
    """Request for :meth:`AccountManager.add_project`."""

    owner_account_id: str = ""
    name: str = ""


@dataclass(frozen=True, slots=True)
class UpdateAccountBillingInfoRequest:
    """Request for :meth:`AccountManager.update_account_billing_info`. ``None`` leaves a field unchanged."""

    account_id: str = ""
    full_name: str | None = None
    company_name: str | None = None
    address: str | None = None
    additional_info: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateProjectRequest:
    """Request for :meth:`AccountManager.update_project`."""

    owner_account_id: str = ""
    project_id: str = ""
    name: str | None = None
    state: ProjectState | None = None
    state_info: str | None = None


@dataclass(frozen=True, slots=True)
class AddAccountUserRequest:
    """Request for :meth:`AccountManager.add_account_user`."""

    account_id: str = ""
    email: str = ""
    role_id: str = ""
    internal: bool = False


@dataclass(frozen=True, slots=True)
class UpdateAccountUserRequest:
    """Request for :meth:`AccountManager.update_account_user`."""

    account_id: str = ""
    email: str = ""
    status: UserStatus | None = None
    role_id: str | None = None


# ------------------------------------------------------------------ #
# Organization settings
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddSettingRequest:
    """Request for :meth:`OrganizationManager.add_setting`."""

    organization_id: str = ""
    key: str = ""
    value: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class UpdateSettingRequest:
    """Request for :meth:`OrganizationManager.update_setting`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    key: str = ""
    value: str | None = None
    description: str | None = None


# ------------------------------------------------------------------ #
# Edge controllers
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddEdgeControllerRequest:
    """Request for :meth:`EdgeControllerManager.add_edge_controller`."""

    organization_id: str = ""
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateEdgeControllerRequest:
    """Request for :meth:`EdgeControllerManager.update_edge_controller`."""

    organization_id: str = ""
    edge_controller_id: str = ""
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)
    show: bool | None = None
    last_alive_timestamp: int | None = None


# ------------------------------------------------------------------ #
# Application network
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ConnectionRequest:
    """Identifies a connection: source outbound interface to target inbound interface.

    Used as is by :meth:`NetworkManager.add_connection`.
    """

    organization_id: str = ""
    source_instance_id: str = ""
    target_instance_id: str = ""
    inbound_name: str = ""
    outbound_name: str = ""


@dataclass(frozen=True, slots=True)
class UpdateConnectionRequest:
    """Request for :meth:`NetworkManager.update_connection`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    source_instance_id: str = ""
    target_instance_id: str = ""
    inbound_name: str = ""
    outbound_name: str = ""
    status: ConnectionStatus | None = None
    ip_range: str | None = None
    zt_network_id: str | None = None


@dataclass(frozen=True, slots=True)
class RemoveConnectionRequest:
    """Request for :meth:`NetworkManager.remove_connection`.

    ``user_confirmation`` must be set to drop a connection whose outbound
    interface is required by the source instance.
    """

    organization_id: str = ""
    source_instance_id: str = ""
    target_instance_id: str = ""
    inbound_name: str = ""
    outbound_name: str = ""
    user_confirmation: bool = False


@dataclass(frozen=True, slots=True)
class AddConnectionLinkRequest:
    """Request for :meth:`NetworkManager.add_connection_link`."""

    organization_id: str = ""
    source_instance_id: str = ""
    source_cluster_id: str = ""
    target_instance_id: str = ""
    target_cluster_id: str = ""
    inbound_name: str = ""
    outbound_name: str = ""


@dataclass(frozen=True, slots=True)
class AddZTConnectionRequest:
    """Request for :meth:`NetworkManager.add_zt_connection`."""

    organization_id: str = ""
    zt_network_id: str = ""
    app_instance_id: str = ""
    service_id: str = ""
    cluster_id: str = ""
    zt_member: str = ""
    zt_ip: str = ""
    side: ZTNetworkSide = ZTNetworkSide.OUTBOUND


@dataclass(frozen=True, slots=True)
class UpdateZTConnectionRequest:
    """Request for :meth:`NetworkManager.update_zt_connection`. ``None`` leaves a field unchanged."""

    organization_id: str = ""
    zt_network_id: str = ""
    app_instance_id: str = ""
    service_id: str = ""
    cluster_id: str = ""
    zt_member: str | None = None
    zt_ip: str | None = None


# ------------------------------------------------------------------ #
# Application history logs
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class AddLogRequest:
    """Request for :meth:`HistoryLogManager.add_log`."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    service_group_instance_id: str = ""
    service_id: str = ""
    service_instance_id: str = ""
    created: int = 0


@dataclass(frozen=True, slots=True)
class UpdateLogRequest:
    """Request for :meth:`HistoryLogManager.update_log`."""

    organization_id: str = ""
    app_instance_id: str = ""
    service_instance_id: str = ""
    terminated: int = 0


@dataclass(frozen=True, slots=True)
class SearchLogsRequest:
    """Request for :meth:`HistoryLogManager.search_logs`. A bound of 0 is open."""

    organization_id: str = ""
    available_from: int = 0
    available_to: int = 0
