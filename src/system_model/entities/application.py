"""
Application entities: descriptors, parametrized snapshots and instances.

A descriptor is a reusable template made of service groups, each holding
one or more services. An instance is a live deployment of a descriptor.
Its runtime state is one nested document::

    AppInstance
      └── groups: [ServiceGroupInstance]
            ├── metadata: InstanceMetadata (desired/available/unavailable)
            └── service_instances: [ServiceInstance]

When an instance is created, a :class:`ParametrizedDescriptor` snapshot of
the descriptor is stored next to it. Service group instances are always
created from that snapshot, so later descriptor edits never change what
an existing instance deploys.

Tags:
    application, descriptor, instance, aggregate, system-model
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PortAccess(str, Enum):
    ALL_APP_SERVICES = "all_app_services"
    APP_SERVICES = "app_services"
    PUBLIC = "public"
    DEVICE_GROUP = "device_group"


class CollocationPolicy(str, Enum):
    SAME_CLUSTER = "same_cluster"
    SEPARATE_CLUSTERS = "separate_clusters"


class ServiceType(str, Enum):
    DOCKER = "docker"


class StorageType(str, Enum):
    EPHEMERAL = "ephemeral"
    CLUSTER_LOCAL = "cluster_local"
    CLUSTER_REPLICA = "cluster_replica"
    CLOUD_PERSISTENT = "cloud_persistent"


class EndpointType(str, Enum):
    IS_ALIVE = "is_alive"
    REST = "rest"
    WEB = "web"
    PROMETHEUS = "prometheus"
    INGESTION = "ingestion"


class ServiceStatus(str, Enum):
    """Runtime status of one service instance."""

    SCHEDULED = "scheduled"
    WAITING = "waiting"
    DEPLOYING = "deploying"
    RUNNING = "running"
    ERROR = "error"


class ApplicationStatus(str, Enum):
    """Runtime status of a whole application instance."""

    QUEUED = "queued"
    PLANNING = "planning"
    SCHEDULED = "scheduled"
    DEPLOYING = "deploying"
    RUNNING = "running"
    INCOMPLETE = "incomplete"
    PLANNING_ERROR = "planning_error"
    DEPLOYMENT_ERROR = "deployment_error"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Descriptor building blocks
# ---------------------------------------------------------------------------


@dataclass
class DeploySpecs:
    cpu: int = 0
    memory: int = 0
    replicas: int = 1


@dataclass
class ServiceGroupDeploymentSpecs:
    replicas: int = 1
    multi_cluster_replica: bool = False


@dataclass
class Storage:
    size: int = 0
    mount_path: str = ""
    type: StorageType = StorageType.EPHEMERAL


@dataclass
class Endpoint:
    type: EndpointType = EndpointType.IS_ALIVE
    path: str = ""


@dataclass
class Port:
    name: str = ""
    internal_port: int = 0
    exposed_port: int = 0
    endpoints: list[Endpoint] = field(default_factory=list)


@dataclass
class Service:
    """A single workload inside a service group."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    service_group_id: str = ""
    service_id: str = ""
    name: str = ""
    type: ServiceType = ServiceType.DOCKER
    image: str = ""
    specs: DeploySpecs = field(default_factory=DeploySpecs)
    storage: list[Storage] = field(default_factory=list)
    exposed_ports: list[Port] = field(default_factory=list)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    deploy_after: list[str] = field(default_factory=list)
    run_arguments: list[str] = field(default_factory=list)


@dataclass
class ServiceGroup:
    """A deployable unit of services that share a collocation policy."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    service_group_id: str = ""
    name: str = ""
    services: list[Service] = field(default_factory=list)
    policy: CollocationPolicy = CollocationPolicy.SAME_CLUSTER
    specs: ServiceGroupDeploymentSpecs = field(default_factory=ServiceGroupDeploymentSpecs)
    labels: dict[str, str] = field(default_factory=dict)

    def find_service(self, service_id: str) -> Service | None:
        for service in self.services:
            if service.service_id == service_id:
                return service
        return None


@dataclass
class SecurityRule:
    """Connectivity rule between services, or from device groups."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    rule_id: str = ""
    name: str = ""
    target_service_group_name: str = ""
    target_service_name: str = ""
    target_port: int = 0
    access: PortAccess = PortAccess.APP_SERVICES
    auth_service_group_name: str = ""
    auth_services: list[str] = field(default_factory=list)
    device_group_names: list[str] = field(default_factory=list)
    device_group_ids: list[str] = field(default_factory=list)


@dataclass
class InboundNetworkInterface:
    """Named endpoint other application instances may connect to."""

    name: str = ""


@dataclass
class OutboundNetworkInterface:
    """Named dependency on another application instance."""

    name: str = ""
    required: bool = False


@dataclass
class AppDescriptor:
    """Reusable application template."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    name: str = ""
    configuration_options: dict[str, str] = field(default_factory=dict)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    rules: list[SecurityRule] = field(default_factory=list)
    groups: list[ServiceGroup] = field(default_factory=list)
    inbound_net_interfaces: list[InboundNetworkInterface] = field(default_factory=list)
    outbound_net_interfaces: list[OutboundNetworkInterface] = field(default_factory=list)

    def find_group(self, service_group_id: str) -> ServiceGroup | None:
        for group in self.groups:
            if group.service_group_id == service_group_id:
                return group
        return None


@dataclass
class InstanceParameter:
    parameter_name: str = ""
    value: str = ""


@dataclass
class InstanceParameters:
    """Parameters supplied when an instance was created."""

    organization_id: str = ""
    app_instance_id: str = ""
    parameters: list[InstanceParameter] = field(default_factory=list)


@dataclass
class ParametrizedDescriptor:
    """
    Frozen per-instance copy of a descriptor.

    Device group names in the security rules are already resolved to
    device group identifiers, and instance parameters are already applied
    on top of the configuration options.
    """

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    name: str = ""
    configuration_options: dict[str, str] = field(default_factory=dict)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    rules: list[SecurityRule] = field(default_factory=list)
    groups: list[ServiceGroup] = field(default_factory=list)
    inbound_net_interfaces: list[InboundNetworkInterface] = field(default_factory=list)
    outbound_net_interfaces: list[OutboundNetworkInterface] = field(default_factory=list)

    @classmethod
    def from_descriptor(
        cls,
        descriptor: AppDescriptor,
        app_instance_id: str,
        parameters: list[InstanceParameter] | None = None,
    ) -> ParametrizedDescriptor:
        options = dict(descriptor.configuration_options)
        for parameter in parameters or []:
            options[parameter.parameter_name] = parameter.value
        return cls(
            organization_id=descriptor.organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
            app_instance_id=app_instance_id,
            name=descriptor.name,
            configuration_options=options,
            environment_variables=dict(descriptor.environment_variables),
            labels=dict(descriptor.labels),
            rules=copy.deepcopy(descriptor.rules),
            groups=copy.deepcopy(descriptor.groups),
            inbound_net_interfaces=copy.deepcopy(descriptor.inbound_net_interfaces),
            outbound_net_interfaces=copy.deepcopy(descriptor.outbound_net_interfaces),
        )

    def find_group(self, service_group_id: str) -> ServiceGroup | None:
        for group in self.groups:
            if group.service_group_id == service_group_id:
                return group
        return None


# ---------------------------------------------------------------------------
# Instance aggregate
# ---------------------------------------------------------------------------


@dataclass
class EndpointInstance:
    endpoint_instance_id: str = ""
    type: EndpointType = EndpointType.IS_ALIVE
    fqdn: str = ""
    port: int = 0


@dataclass
class InstanceMetadata:
    """Replica counters of one service group instance."""

    monitored_instance_id: str = ""
    desired_replicas: int = 0
    available_replicas: int = 0
    unavailable_replicas: int = 0


@dataclass
class ServiceInstance:
    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    service_group_instance_id: str = ""
    service_id: str = ""
    service_instance_id: str = ""
    name: str = ""
    type: ServiceType = ServiceType.DOCKER
    image: str = ""
    specs: DeploySpecs = field(default_factory=DeploySpecs)
    storage: list[Storage] = field(default_factory=list)
    exposed_ports: list[Port] = field(default_factory=list)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    deploy_after: list[str] = field(default_factory=list)
    run_arguments: list[str] = field(default_factory=list)
    status: ServiceStatus = ServiceStatus.SCHEDULED
    endpoints: list[EndpointInstance] = field(default_factory=list)
    deployed_on_cluster_id: str = ""
    info: str = ""


@dataclass
class ServiceGroupInstance:
    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    service_group_instance_id: str = ""
    name: str = ""
    service_instances: list[ServiceInstance] = field(default_factory=list)
    policy: CollocationPolicy = CollocationPolicy.SAME_CLUSTER
    status: ServiceStatus = ServiceStatus.SCHEDULED
    metadata: InstanceMetadata = field(default_factory=InstanceMetadata)
    specs: ServiceGroupDeploymentSpecs = field(default_factory=ServiceGroupDeploymentSpecs)
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class AppInstance:
    """
    Live deployment of a descriptor.

    ``version`` is advanced by the store on every successful update; an
    update carrying a stale version is rejected with ``ConflictError``.
    """

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    name: str = ""
    configuration_options: dict[str, str] = field(default_factory=dict)
    environment_variables: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    status: ApplicationStatus = ApplicationStatus.DEPLOYING
    groups: list[ServiceGroupInstance] = field(default_factory=list)
    info: str = ""
    created: int = 0
    inbound_net_interfaces: list[InboundNetworkInterface] = field(default_factory=list)
    outbound_net_interfaces: list[OutboundNetworkInterface] = field(default_factory=list)
    version: int = 0

    def find_inbound(self, name: str) -> InboundNetworkInterface | None:
        for interface in self.inbound_net_interfaces:
            if interface.name == name:
                return interface
        return None

    def find_outbound(self, name: str) -> OutboundNetworkInterface | None:
        for interface in self.outbound_net_interfaces:
            if interface.name == name:
                return interface
        return None

    def has_service(self, service_id: str) -> bool:
        """Whether any service instance of this instance runs *service_id*."""
        return any(
            service_instance.service_id == service_id
            for group_instance in self.groups
            for service_instance in group_instance.service_instances
        )

    def find_group_instance(
        self, service_group_id: str, service_group_instance_id: str
    ) -> ServiceGroupInstance | None:
        """Match on both ids; a group-instance id under another group is rejected."""
        for group_instance in self.groups:
            if (
                group_instance.service_group_id == service_group_id
                and group_instance.service_group_instance_id == service_group_instance_id
            ):
                return group_instance
        return None

    def find_service_instance(
        self, service_group_instance_id: str, service_instance_id: str
    ) -> ServiceInstance | None:
        for group_instance in self.groups:
            if group_instance.service_group_instance_id != service_group_instance_id:
                continue
            for service_instance in group_instance.service_instances:
                if service_instance.service_instance_id == service_instance_id:
                    return service_instance
        return None
