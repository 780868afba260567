"""Provider set construction for each storage backend."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, fields

from sqlalchemy.engine import Engine

from system_model.core.logging import get_logger
from system_model.core.orm.session import create_system_model_engine, session_factory
from system_model.core.settings import StorageBackend, SystemModelSettings
from system_model.entities import (
    Account,
    AccountUser,
    AppDescriptor,
    AppInstance,
    Asset,
    Cluster,
    ConnectionInstance,
    ConnectionInstanceLink,
    Device,
    DeviceGroup,
    EdgeController,
    InstanceParameters,
    Node,
    OrganizationSetting,
    ParametrizedDescriptor,
    Project,
    Role,
    ServiceInstanceLog,
    User,
    ZTNetworkConnection,
)
from system_model.providers import base
from system_model.providers.base import EntityBinding, EntityStore
from system_model.providers.membership import MembershipIndex, MemoryMembershipIndex, SQLMembershipIndex
from system_model.providers.memory import MemoryEntityStore
from system_model.providers.organization import (
    MemoryOrganizationProvider,
    OrganizationProvider,
    SQLOrganizationProvider,
)
from system_model.providers.sql import SQLEntityStore

logger = get_logger(__name__)


@dataclass
class ProviderSet:
    """Every provider the managers need, sharing one backend."""

    organizations: OrganizationProvider
    cluster_nodes: MembershipIndex
    clusters: EntityStore[Cluster]
    nodes: EntityStore[Node]
    users: EntityStore[User]
    roles: EntityStore[Role]
    descriptors: EntityStore[AppDescriptor]
    instances: EntityStore[AppInstance]
    parametrized_descriptors: EntityStore[ParametrizedDescriptor]
    instance_parameters: EntityStore[InstanceParameters]
    device_groups: EntityStore[DeviceGroup]
    devices: EntityStore[Device]
    assets: EntityStore[Asset]
    accounts: EntityStore[Account]
    projects: EntityStore[Project]
    account_users: EntityStore[AccountUser]
    edge_controllers: EntityStore[EdgeController]
    organization_settings: EntityStore[OrganizationSetting]
    connections: EntityStore[ConnectionInstance]
    connection_links: EntityStore[ConnectionInstanceLink]
    zt_connections: EntityStore[ZTNetworkConnection]
    service_instance_logs: EntityStore[ServiceInstanceLog]
    closers: list[Callable[[], None]] = field(default_factory=list, repr=False)

    def clear(self) -> None:
        """Empty every store (used by tests and fixtures)."""
        for item in fields(self):
            if item.name != "closers":
                getattr(self, item.name).clear()

    def close(self) -> None:
        for close in self.closers:
            close()
        self.closers.clear()


_STORE_BINDINGS: dict[str, EntityBinding] = {
    "clusters": base.CLUSTERS,
    "nodes": base.NODES,
    "users": base.USERS,
    "roles": base.ROLES,
    "descriptors": base.APP_DESCRIPTORS,
    "instances": base.APP_INSTANCES,
    "parametrized_descriptors": base.PARAMETRIZED_DESCRIPTORS,
    "instance_parameters": base.INSTANCE_PARAMETERS,
    "device_groups": base.DEVICE_GROUPS,
    "devices": base.DEVICES,
    "assets": base.ASSETS,
    "accounts": base.ACCOUNTS,
    "projects": base.PROJECTS,
    "account_users": base.ACCOUNT_USERS,
    "edge_controllers": base.EDGE_CONTROLLERS,
    "organization_settings": base.ORGANIZATION_SETTINGS,
    "connections": base.CONNECTIONS,
    "connection_links": base.CONNECTION_LINKS,
    "zt_connections": base.ZT_CONNECTIONS,
    "service_instance_logs": base.SERVICE_INSTANCE_LOGS,
}


def create_memory_providers() -> ProviderSet:
    stores = {name: MemoryEntityStore(binding) for name, binding in _STORE_BINDINGS.items()}
    return ProviderSet(
        organizations=MemoryOrganizationProvider(), cluster_nodes=MemoryMembershipIndex(), **stores
    )


def create_sql_providers(engine: Engine) -> ProviderSet:
    """Build SQL providers; each gets its own session over *engine*."""
    make_session = session_factory(engine)
    organizations = SQLOrganizationProvider(make_session())
    cluster_nodes = SQLMembershipIndex(make_session())
    stores = {name: SQLEntityStore(binding, make_session()) for name, binding in _STORE_BINDINGS.items()}
    closers = [organizations.close, cluster_nodes.close, *(store.close for store in stores.values())]
    return ProviderSet(organizations=organizations, cluster_nodes=cluster_nodes, closers=closers, **stores)


def create_providers(settings: SystemModelSettings) -> tuple[ProviderSet, Engine | None]:
    """Build the provider set selected by ``settings.storage_backend``."""
    if settings.storage_backend == StorageBackend.MEMORY:
        logger.info("providers_created", backend="memory")
        return create_memory_providers(), None

    engine = create_system_model_engine(settings.database_url, echo=settings.database_echo)
    logger.info("providers_created", backend="sql", url=engine.url.render_as_string(hide_password=True))
    return create_sql_providers(engine), engine
