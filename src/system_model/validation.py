"""
Request validation.

Pure functions called by the managers before any storage access. Each one
raises :class:`~system_model.core.errors.InvalidArgumentError` naming the
offending field, so a rejected request never causes a write.
"""

from __future__ import annotations

from typing import Any

from system_model.core.errors import InvalidArgumentError
from system_model.entities import InboundNetworkInterface, OutboundNetworkInterface, ServiceGroup
from system_model.requests import (
    AddAccountRequest,
    AddAccountUserRequest,
    AddAppDescriptorRequest,
    AddAppInstanceRequest,
    AddAssetRequest,
    AddClusterRequest,
    AddConnectionLinkRequest,
    AddDeviceGroupRequest,
    AddDeviceRequest,
    AddEdgeControllerRequest,
    AddLogRequest,
    AddNodeRequest,
    AddOrganizationRequest,
    AddProjectRequest,
    AddRoleRequest,
    AddServiceGroupInstancesRequest,
    AddServiceInstanceRequest,
    AddSettingRequest,
    AddUserRequest,
    AddZTConnectionRequest,
    ConnectionRequest,
    RemoveConnectionRequest,
    SearchLogsRequest,
    UpdateAccountBillingInfoRequest,
    UpdateAccountRequest,
    UpdateAccountUserRequest,
    UpdateAppDescriptorRequest,
    UpdateAppStatusRequest,
    UpdateAssetRequest,
    UpdateClusterRequest,
    UpdateConnectionRequest,
    UpdateContactInfoRequest,
    UpdateDeviceRequest,
    UpdateEdgeControllerRequest,
    UpdateLogRequest,
    UpdateNodeRequest,
    UpdateOrganizationRequest,
    UpdateProjectRequest,
    UpdateServiceStatusRequest,
    UpdateSettingRequest,
    UpdateUserRequest,
    UpdateZTConnectionRequest,
)

MIN_PORT = 1
MAX_PORT = 65535


def require(value: Any, field: str) -> None:
    """Reject empty identifiers and names."""
    if not value:
        raise InvalidArgumentError(f"{field} cannot be empty", field=field, value=value)


def require_ids(**ids: str) -> None:
    for field, value in ids.items():
        require(value, field)


def _check_port(port: int, field: str) -> None:
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidArgumentError(
            f"{field} must be between {MIN_PORT} and {MAX_PORT}", field=field, value=port
        )


def _check_optional_name(value: str | None, field: str) -> None:
    if value is not None:
        require(value, field)


# ------------------------------------------------------------------ #
# Organizations, clusters, nodes, users, roles
# ------------------------------------------------------------------ #


def validate_add_organization(request: AddOrganizationRequest) -> None:
    require(request.name, "name")


def validate_update_organization(request: UpdateOrganizationRequest) -> None:
    require(request.organization_id, "organization_id")
    _check_optional_name(request.name, "name")


def validate_add_cluster(request: AddClusterRequest) -> None:
    require(request.organization_id, "organization_id")
    if request.cluster_id:
        raise InvalidArgumentError(
            "cluster_id must be empty, it is generated by the registry",
            field="cluster_id",
            value=request.cluster_id,
        )
    require(request.name, "name")


def validate_update_cluster(request: UpdateClusterRequest) -> None:
    require_ids(organization_id=request.organization_id, cluster_id=request.cluster_id)
    _check_optional_name(request.name, "name")


def validate_add_node(request: AddNodeRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.ip, "ip")


def validate_update_node(request: UpdateNodeRequest) -> None:
    require_ids(organization_id=request.organization_id, node_id=request.node_id)


def validate_add_user(request: AddUserRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.email, "email")
    if "@" not in request.email:
        raise InvalidArgumentError("email is not a valid address", field="email", value=request.email)
    require(request.name, "name")


def validate_update_user(request: UpdateUserRequest) -> None:
    require_ids(organization_id=request.organization_id, email=request.email)
    _check_optional_name(request.name, "name")


def validate_update_contact_info(request: UpdateContactInfoRequest) -> None:
    require_ids(organization_id=request.organization_id, email=request.email)


def validate_add_role(request: AddRoleRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.name, "name")


# ------------------------------------------------------------------ #
# Applications
# ------------------------------------------------------------------ #


def validate_service_groups(groups: list[ServiceGroup]) -> None:
    """Structural checks shared by descriptor add and update."""
    if not groups:
        raise InvalidArgumentError("descriptor must define at least one service group", field="groups")
    for group in groups:
        require(group.name, "groups.name")
        if group.specs.replicas <= 0:
            raise InvalidArgumentError(
                "service group replicas must be positive",
                field="groups.specs.replicas",
                value=group.specs.replicas,
            )
        if not group.services:
            raise InvalidArgumentError(
                f"service group {group.name} has no services", field="groups.services", value=group.name
            )
        names: set[str] = set()
        for service in group.services:
            require(service.name, "services.name")
            if service.name in names:
                raise InvalidArgumentError(
                    f"duplicate service name {service.name} in group {group.name}",
                    field="services.name",
                    value=service.name,
                )
            names.add(service.name)
            require(service.image, "services.image")
            if service.specs.replicas <= 0:
                raise InvalidArgumentError(
                    "service replicas must be positive",
                    field="services.specs.replicas",
                    value=service.specs.replicas,
                )
            for port in service.exposed_ports:
                _check_port(port.internal_port, "exposed_ports.internal_port")
                if port.exposed_port:
                    _check_port(port.exposed_port, "exposed_ports.exposed_port")


def validate_net_interfaces(
    inbound: list[InboundNetworkInterface], outbound: list[OutboundNetworkInterface]
) -> None:
    """Interface names are required and unique per direction."""
    for interfaces, field in ((inbound, "inbound_net_interfaces"), (outbound, "outbound_net_interfaces")):
        names: set[str] = set()
        for interface in interfaces:
            require(interface.name, f"{field}.name")
            if interface.name in names:
                raise InvalidArgumentError(
                    f"duplicate interface name {interface.name}", field=f"{field}.name", value=interface.name
                )
            names.add(interface.name)


def validate_add_descriptor(request: AddAppDescriptorRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.name, "name")
    validate_service_groups(request.groups)
    for rule in request.rules:
        require(rule.name, "rules.name")
        if rule.target_port:
            _check_port(rule.target_port, "rules.target_port")
    validate_net_interfaces(request.inbound_net_interfaces, request.outbound_net_interfaces)


def validate_update_descriptor(request: UpdateAppDescriptorRequest) -> None:
    require_ids(organization_id=request.organization_id, app_descriptor_id=request.app_descriptor_id)
    _check_optional_name(request.name, "name")
    if request.groups is not None:
        validate_service_groups(request.groups)


def validate_add_instance(request: AddAppInstanceRequest) -> None:
    require_ids(organization_id=request.organization_id, app_descriptor_id=request.app_descriptor_id)
    require(request.name, "name")
    for parameter in request.parameters:
        require(parameter.parameter_name, "parameters.parameter_name")


def validate_add_service_group_instances(request: AddServiceGroupInstancesRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        app_descriptor_id=request.app_descriptor_id,
        app_instance_id=request.app_instance_id,
        service_group_id=request.service_group_id,
    )
    if request.num_instances <= 0:
        raise InvalidArgumentError(
            "num_instances must be positive", field="num_instances", value=request.num_instances
        )


def validate_add_service_instance(request: AddServiceInstanceRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        app_descriptor_id=request.app_descriptor_id,
        app_instance_id=request.app_instance_id,
        service_group_id=request.service_group_id,
        service_group_instance_id=request.service_group_instance_id,
        service_id=request.service_id,
    )


def validate_update_service_status(request: UpdateServiceStatusRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        app_instance_id=request.app_instance_id,
        service_group_instance_id=request.service_group_instance_id,
        service_instance_id=request.service_instance_id,
    )


def validate_update_app_status(request: UpdateAppStatusRequest) -> None:
    require_ids(organization_id=request.organization_id, app_instance_id=request.app_instance_id)


# ------------------------------------------------------------------ #
# Devices, assets, accounts
# ------------------------------------------------------------------ #


def validate_add_device_group(request: AddDeviceGroupRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.name, "name")


def validate_add_device(request: AddDeviceRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        device_group_id=request.device_group_id,
        device_id=request.device_id,
    )


def validate_update_device(request: UpdateDeviceRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        device_group_id=request.device_group_id,
        device_id=request.device_id,
    )


def validate_add_asset(request: AddAssetRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.edge_controller_id, "edge_controller_id")


def validate_update_asset(request: UpdateAssetRequest) -> None:
    require_ids(organization_id=request.organization_id, asset_id=request.asset_id)


def validate_add_account(request: AddAccountRequest) -> None:
    require(request.name, "name")


def validate_update_account(request: UpdateAccountRequest) -> None:
    require(request.account_id, "account_id")
    _check_optional_name(request.name, "name")


def validate_add_project(request: AddProjectRequest) -> None:
    require(request.owner_account_id, "owner_account_id")
    require(request.name, "name")


def validate_update_billing_info(request: UpdateAccountBillingInfoRequest) -> None:
    require(request.account_id, "account_id")


def validate_update_project(request: UpdateProjectRequest) -> None:
    require_ids(owner_account_id=request.owner_account_id, project_id=request.project_id)
    _check_optional_name(request.name, "name")


def validate_add_account_user(request: AddAccountUserRequest) -> None:
    require_ids(account_id=request.account_id, email=request.email)


def validate_update_account_user(request: UpdateAccountUserRequest) -> None:
    require_ids(account_id=request.account_id, email=request.email)


# ------------------------------------------------------------------ #
# Settings, edge controllers
# ------------------------------------------------------------------ #


def validate_add_setting(request: AddSettingRequest) -> None:
    require_ids(organization_id=request.organization_id, key=request.key)


def validate_update_setting(request: UpdateSettingRequest) -> None:
    require_ids(organization_id=request.organization_id, key=request.key)


def validate_add_edge_controller(request: AddEdgeControllerRequest) -> None:
    require(request.organization_id, "organization_id")
    require(request.name, "name")


def validate_update_edge_controller(request: UpdateEdgeControllerRequest) -> None:
    require_ids(organization_id=request.organization_id, edge_controller_id=request.edge_controller_id)


# ------------------------------------------------------------------ #
# Application network, history logs
# ------------------------------------------------------------------ #


def validate_connection(request: ConnectionRequest | UpdateConnectionRequest | RemoveConnectionRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        source_instance_id=request.source_instance_id,
        target_instance_id=request.target_instance_id,
        inbound_name=request.inbound_name,
        outbound_name=request.outbound_name,
    )


def validate_add_connection_link(request: AddConnectionLinkRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        source_instance_id=request.source_instance_id,
        source_cluster_id=request.source_cluster_id,
        target_instance_id=request.target_instance_id,
        target_cluster_id=request.target_cluster_id,
        inbound_name=request.inbound_name,
        outbound_name=request.outbound_name,
    )


def validate_zt_connection(request: AddZTConnectionRequest | UpdateZTConnectionRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        zt_network_id=request.zt_network_id,
        app_instance_id=request.app_instance_id,
        service_id=request.service_id,
        cluster_id=request.cluster_id,
    )


def validate_add_log(request: AddLogRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        app_descriptor_id=request.app_descriptor_id,
        app_instance_id=request.app_instance_id,
        service_group_id=request.service_group_id,
        service_group_instance_id=request.service_group_instance_id,
        service_instance_id=request.service_instance_id,
    )


def validate_update_log(request: UpdateLogRequest) -> None:
    require_ids(
        organization_id=request.organization_id,
        app_instance_id=request.app_instance_id,
        service_instance_id=request.service_instance_id,
    )


def validate_search_logs(request: SearchLogsRequest) -> None:
    require(request.organization_id, "organization_id")
    if request.available_from and request.available_to and request.available_from > request.available_to:
        raise InvalidArgumentError(
            "available_from must not be after available_to",
            field="available_from",
            value=request.available_from,
        )
