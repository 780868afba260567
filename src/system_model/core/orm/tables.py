"""SQLAlchemy 2.0 table definitions for the system model.

Manifesto:
    Entity stores keep one JSON document per row so that nested
    aggregates (application instances with their service group instances)
    are always written as one unit. The Organization Index keeps one table
    per child kind with identical shape.

Usage::

    from system_model.core.orm import SystemModelBase

    engine = create_system_model_engine("sqlite:///system_model.db")
    SystemModelBase.metadata.create_all(engine)

Tags:
    system-model, orm, sqlalchemy, tables
"""

from __future__ import annotations

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from system_model.core.orm.base import ChildIndexMixin, DocumentMixin, SystemModelBase

# =============================================================================
# Organizations
# =============================================================================


class OrganizationTable(SystemModelBase):
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    created: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    document: Mapped[str] = mapped_column(Text, nullable=False)


class OrganizationClusterTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_clusters"


class OrganizationNodeTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_nodes"


class OrganizationDescriptorTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_descriptors"


class OrganizationInstanceTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_instances"


class OrganizationUserTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_users"


class OrganizationRoleTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_roles"


class OrganizationEdgeControllerTable(ChildIndexMixin, SystemModelBase):
    __tablename__ = "organization_edge_controllers"


# =============================================================================
# Cluster membership
# =============================================================================


class ClusterNodeTable(SystemModelBase):
    """Nodes attached to a cluster; a node belongs to at most one cluster."""

    __tablename__ = "cluster_nodes"

    cluster_id: Mapped[str] = mapped_column(Text, primary_key=True)
    node_id: Mapped[str] = mapped_column(Text, primary_key=True)


# =============================================================================
# Entity stores
# =============================================================================


class ClusterTable(DocumentMixin, SystemModelBase):
    __tablename__ = "clusters"


class NodeTable(DocumentMixin, SystemModelBase):
    __tablename__ = "nodes"


class UserTable(DocumentMixin, SystemModelBase):
    __tablename__ = "users"


class RoleTable(DocumentMixin, SystemModelBase):
    __tablename__ = "roles"


class AppDescriptorTable(DocumentMixin, SystemModelBase):
    __tablename__ = "app_descriptors"


class AppInstanceTable(DocumentMixin, SystemModelBase):
    __tablename__ = "app_instances"


class ParametrizedDescriptorTable(DocumentMixin, SystemModelBase):
    __tablename__ = "parametrized_descriptors"


class InstanceParametersTable(DocumentMixin, SystemModelBase):
    __tablename__ = "instance_parameters"


class DeviceGroupTable(DocumentMixin, SystemModelBase):
    __tablename__ = "device_groups"


class DeviceTable(DocumentMixin, SystemModelBase):
    __tablename__ = "devices"


class AssetTable(DocumentMixin, SystemModelBase):
    __tablename__ = "assets"


class AccountTable(DocumentMixin, SystemModelBase):
    __tablename__ = "accounts"


class ProjectTable(DocumentMixin, SystemModelBase):
    __tablename__ = "projects"


class AccountUserTable(DocumentMixin, SystemModelBase):
    __tablename__ = "account_users"


class EdgeControllerTable(DocumentMixin, SystemModelBase):
    __tablename__ = "edge_controllers"


class OrganizationSettingTable(DocumentMixin, SystemModelBase):
    __tablename__ = "organization_settings"


class ConnectionTable(DocumentMixin, SystemModelBase):
    __tablename__ = "connections"


class ConnectionLinkTable(DocumentMixin, SystemModelBase):
    __tablename__ = "connection_links"


class ZTConnectionTable(DocumentMixin, SystemModelBase):
    __tablename__ = "zt_connections"


class ServiceInstanceLogTable(DocumentMixin, SystemModelBase):
    __tablename__ = "service_instance_logs"


ALL_TABLES = [
    OrganizationTable,
    OrganizationClusterTable,
    OrganizationNodeTable,
    OrganizationDescriptorTable,
    OrganizationInstanceTable,
    OrganizationUserTable,
    OrganizationRoleTable,
    OrganizationEdgeControllerTable,
    ClusterNodeTable,
    ClusterTable,
    NodeTable,
    UserTable,
    RoleTable,
    AppDescriptorTable,
    AppInstanceTable,
    ParametrizedDescriptorTable,
    InstanceParametersTable,
    DeviceGroupTable,
    DeviceTable,
    AssetTable,
    AccountTable,
    ProjectTable,
    AccountUserTable,
    EdgeControllerTable,
    OrganizationSettingTable,
    ConnectionTable,
    ConnectionLinkTable,
    ZTConnectionTable,
    ServiceInstanceLogTable,
]
