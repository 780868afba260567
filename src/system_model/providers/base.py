"""
Entity store protocol and per-kind bindings.

Every entity kind is persisted through the same :class:`EntityStore`
interface. What differs between kinds (storage table, entity type, which
field is the key, which field is the owner, whether the entity is
versioned) is captured in an :class:`EntityBinding`, so the memory and SQL
implementations are written once.

Error semantics:
    - ``add`` raises ``AlreadyExistsError`` when the key is taken
    - ``get``, ``update`` and ``remove`` raise ``NotFoundError`` when absent
    - ``update`` of a versioned entity raises ``ConflictError`` when the
      stored version moved since the caller read it

Tags:
    provider, storage, protocol, system-model
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Protocol, runtime_checkable

from system_model.core.errors import AlreadyExistsError, ConflictError, NotFoundError
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


@runtime_checkable
class EntityStore[T](Protocol):
    """Per-kind persistence used by the managers."""

    def add(self, entity: T) -> None: ...

    def get(self, key: str) -> T: ...

    def update(self, entity: T) -> None: ...

    def remove(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def list_by_owner(self, owner_id: str) -> list[T]: ...

    def clear(self) -> None: ...


@dataclass(frozen=True, slots=True)
class EntityBinding[T]:
    """How one entity kind maps onto a store."""

    kind: str
    table: str
    entity_type: type[T]
    key: Callable[[T], str]
    owner: Callable[[T], str]
    versioned: bool = False

    def not_found(self, key: str) -> NotFoundError:
        return NotFoundError(f"{self.kind} not found").with_context(
            entity_kind=self.kind, entity_id=key
        )

    def already_exists(self, key: str) -> AlreadyExistsError:
        return AlreadyExistsError(f"{self.kind} already exists").with_context(
            entity_kind=self.kind, entity_id=key
        )

    def conflict(self, key: str, expected: int, actual: int) -> ConflictError:
        return ConflictError(
            f"{self.kind} was modified concurrently",
            expected_version=expected,
            actual_version=actual,
        ).with_context(entity_kind=self.kind, entity_id=key)


def _owner(field_name: str) -> Callable[[Any], str]:
    return attrgetter(field_name)


def composite_key(*parts: str) -> str:
    """Store key for entities identified by more than one id.

    Rendered as a compact JSON array: unambiguous whatever the ids contain,
    and ordered the same way by both backends.
    """
    return json.dumps(list(parts), separators=(",", ":"))


def _composite(*field_names: str) -> Callable[[Any], str]:
    getter = attrgetter(*field_names)
    return lambda entity: composite_key(*getter(entity))


CLUSTERS = EntityBinding("cluster", "clusters", Cluster, attrgetter("cluster_id"), _owner("organization_id"))
NODES = EntityBinding("node", "nodes", Node, attrgetter("node_id"), _owner("organization_id"))
USERS = EntityBinding("user", "users", User, attrgetter("email"), _owner("organization_id"))
ROLES = EntityBinding("role", "roles", Role, attrgetter("role_id"), _owner("organization_id"))
APP_DESCRIPTORS = EntityBinding(
    "descriptor", "app_descriptors", AppDescriptor, attrgetter("app_descriptor_id"), _owner("organization_id")
)
APP_INSTANCES = EntityBinding(
    "instance",
    "app_instances",
    AppInstance,
    attrgetter("app_instance_id"),
    _owner("organization_id"),
    versioned=True,
)
PARAMETRIZED_DESCRIPTORS = EntityBinding(
    "parametrized_descriptor",
    "parametrized_descriptors",
    ParametrizedDescriptor,
    attrgetter("app_instance_id"),
    _owner("organization_id"),
)
INSTANCE_PARAMETERS = EntityBinding(
    "instance_parameters",
    "instance_parameters",
    InstanceParameters,
    attrgetter("app_instance_id"),
    _owner("organization_id"),
)
DEVICE_GROUPS = EntityBinding(
    "device_group", "device_groups", DeviceGroup, attrgetter("device_group_id"), _owner("organization_id")
)
# Device ids are only unique within their group.
DEVICES = EntityBinding(
    "device",
    "devices",
    Device,
    _composite("organization_id", "device_group_id", "device_id"),
    _owner("organization_id"),
)
ASSETS = EntityBinding("asset", "assets", Asset, attrgetter("asset_id"), _owner("organization_id"))
# Accounts are top-level; they all share one owner bucket.
ACCOUNTS = EntityBinding("account", "accounts", Account, attrgetter("account_id"), lambda _account: "")
PROJECTS = EntityBinding("project", "projects", Project, attrgetter("project_id"), _owner("owner_account_id"))
ACCOUNT_USERS = EntityBinding(
    "account_user", "account_users", AccountUser, _composite("account_id", "email"), _owner("account_id")
)
EDGE_CONTROLLERS = EntityBinding(
    "edge_controller",
    "edge_controllers",
    EdgeController,
    attrgetter("edge_controller_id"),
    _owner("organization_id"),
)
ORGANIZATION_SETTINGS = EntityBinding(
    "organization_setting",
    "organization_settings",
    OrganizationSetting,
    _composite("organization_id", "key"),
    _owner("organization_id"),
)
CONNECTIONS = EntityBinding(
    "connection",
    "connections",
    ConnectionInstance,
    _composite("organization_id", "source_instance_id", "target_instance_id", "inbound_name", "outbound_name"),
    _owner("organization_id"),
)
CONNECTION_LINKS = EntityBinding(
    "connection_link",
    "connection_links",
    ConnectionInstanceLink,
    _composite(
        "organization_id",
        "source_instance_id",
        "source_cluster_id",
        "target_instance_id",
        "target_cluster_id",
        "inbound_name",
        "outbound_name",
    ),
    _owner("organization_id"),
)
ZT_CONNECTIONS = EntityBinding(
    "zt_connection",
    "zt_connections",
    ZTNetworkConnection,
    _composite("organization_id", "zt_network_id", "app_instance_id", "service_id", "cluster_id"),
    _owner("organization_id"),
)
SERVICE_INSTANCE_LOGS = EntityBinding(
    "service_instance_log",
    "service_instance_logs",
    ServiceInstanceLog,
    _composite("organization_id", "app_instance_id", "service_group_instance_id", "service_instance_id"),
    _owner("organization_id"),
)

ALL_BINDINGS: tuple[EntityBinding, ...] = (
    CLUSTERS,
    NODES,
    USERS,
    ROLES,
    APP_DESCRIPTORS,
    APP_INSTANCES,
    PARAMETRIZED_DESCRIPTORS,
    INSTANCE_PARAMETERS,
    DEVICE_GROUPS,
    DEVICES,
    ASSETS,
    ACCOUNTS,
    PROJECTS,
    ACCOUNT_USERS,
    EDGE_CONTROLLERS,
    ORGANIZATION_SETTINGS,
    CONNECTIONS,
    CONNECTION_LINKS,
    ZT_CONNECTIONS,
    SERVICE_INSTANCE_LOGS,
)
