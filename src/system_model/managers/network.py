"""
Application network manager.

Manifesto:
    A connection is only meaningful while both ends exist, so every write
    re-checks the source instance's outbound interface and the target
    instance's inbound interface against the live instances. Both
    instances must belong to the organization named in the request.

    Links are recorded by the platform once the connection is wired
    between two clusters; a connection with links can't be removed.
    Removing a connection whose outbound interface is required by the
    source instance needs explicit user confirmation.

Tags:
    application-network, connection, zerotier, system-model
"""

from __future__ import annotations

from system_model.core.errors import FailedPreconditionError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import (
    AppInstance,
    ChildKind,
    ConnectionInstance,
    ConnectionInstanceLink,
    ConnectionStatus,
    OutboundNetworkInterface,
    ZTNetworkConnection,
)
from system_model.managers.base import Manager
from system_model.providers import composite_key
from system_model.providers.base import CONNECTION_LINKS, ZT_CONNECTIONS
from system_model.requests import (
    AddConnectionLinkRequest,
    AddZTConnectionRequest,
    ConnectionRequest,
    RemoveConnectionRequest,
    UpdateConnectionRequest,
    UpdateZTConnectionRequest,
)
from system_model.validation import (
    require_ids,
    validate_add_connection_link,
    validate_connection,
    validate_zt_connection,
)

logger = get_logger(__name__)


def _connection_key(request) -> str:
    return composite_key(
        request.organization_id,
        request.source_instance_id,
        request.target_instance_id,
        request.inbound_name,
        request.outbound_name,
    )


def _same_connection(link: ConnectionInstanceLink, request) -> bool:
    return (
        link.source_instance_id == request.source_instance_id
        and link.target_instance_id == request.target_instance_id
        and link.inbound_name == request.inbound_name
        and link.outbound_name == request.outbound_name
    )


class NetworkManager(Manager):
    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def _instance(self, organization_id: str, app_instance_id: str, role: str) -> AppInstance:
        if not self.providers.organizations.child_exists(ChildKind.INSTANCE, organization_id, app_instance_id):
            raise NotFoundError(f"{role} instance not found").with_context(
                organization_id=organization_id, entity_kind="instance", entity_id=app_instance_id
            )
        return self.providers.instances.get(app_instance_id)

    def _endpoints(self, request) -> tuple[AppInstance, AppInstance, OutboundNetworkInterface]:
        """Check both ends of a connection; returns the outbound interface."""
        self._require_organization(request.organization_id)
        source = self._instance(request.organization_id, request.source_instance_id, "source")
        outbound = source.find_outbound(request.outbound_name)
        if outbound is None:
            raise NotFoundError("outbound interface not found").with_context(
                organization_id=request.organization_id,
                entity_kind="outbound_interface",
                entity_id=request.outbound_name,
                app_instance_id=source.app_instance_id,
            )
        target = self._instance(request.organization_id, request.target_instance_id, "target")
        if target.find_inbound(request.inbound_name) is None:
            raise NotFoundError("inbound interface not found").with_context(
                organization_id=request.organization_id,
                entity_kind="inbound_interface",
                entity_id=request.inbound_name,
                app_instance_id=target.app_instance_id,
            )
        return source, target, outbound

    def _require_connection(self, request) -> ConnectionInstance:
        key = _connection_key(request)
        if not self.providers.connections.exists(key):
            raise NotFoundError("connection not found").with_context(
                organization_id=request.organization_id,
                entity_kind="connection",
                source_instance_id=request.source_instance_id,
                target_instance_id=request.target_instance_id,
                inbound_name=request.inbound_name,
                outbound_name=request.outbound_name,
            )
        return self.providers.connections.get(key)

    # ------------------------------------------------------------------ #
    # Connections
    # ------------------------------------------------------------------ #

    def add_connection(self, request: ConnectionRequest) -> ConnectionInstance:
        validate_connection(request)
        source, target, outbound = self._endpoints(request)
        connection = ConnectionInstance(
            organization_id=request.organization_id,
            connection_id=self._new_id(),
            source_instance_id=source.app_instance_id,
            source_instance_name=source.name,
            target_instance_id=target.app_instance_id,
            target_instance_name=target.name,
            inbound_name=request.inbound_name,
            outbound_name=request.outbound_name,
            outbound_required=outbound.required,
            status=ConnectionStatus.WAITING,
        )
        self.providers.connections.add(connection)
        logger.info(
            "connection_added",
            organization_id=connection.organization_id,
            connection_id=connection.connection_id,
            source_instance_id=connection.source_instance_id,
            target_instance_id=connection.target_instance_id,
        )
        return connection

    def get_connection(self, request: ConnectionRequest) -> ConnectionInstance:
        validate_connection(request)
        self._require_organization(request.organization_id)
        return self._require_connection(request)

    def list_connections(self, organization_id: str) -> list[ConnectionInstance]:
        require_ids(organization_id=organization_id)
        self._require_organization(organization_id)
        return self.providers.connections.list_by_owner(organization_id)

    def list_inbound_connections(self, organization_id: str, app_instance_id: str) -> list[ConnectionInstance]:
        """Connections whose target is *app_instance_id*."""
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_organization(organization_id)
        self._instance(organization_id, app_instance_id, "target")
        return [
            connection
            for connection in self.providers.connections.list_by_owner(organization_id)
            if connection.target_instance_id == app_instance_id
        ]

    def list_outbound_connections(self, organization_id: str, app_instance_id: str) -> list[ConnectionInstance]:
        """Connections whose source is *app_instance_id*."""
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_organization(organization_id)
        self._instance(organization_id, app_instance_id, "source")
        return [
            connection
            for connection in self.providers.connections.list_by_owner(organization_id)
            if connection.source_instance_id == app_instance_id
        ]

    def update_connection(self, request: UpdateConnectionRequest) -> ConnectionInstance:
        validate_connection(request)
        self._endpoints(request)
        connection = self._require_connection(request)
        if request.status is not None:
            connection.status = request.status
        if request.ip_range is not None:
            connection.ip_range = request.ip_range
        if request.zt_network_id is not None:
            connection.zt_network_id = request.zt_network_id
        self.providers.connections.update(connection)
        logger.debug(
            "connection_updated",
            organization_id=connection.organization_id,
            connection_id=connection.connection_id,
            status=connection.status.value,
        )
        return connection

    def remove_connection(self, request: RemoveConnectionRequest) -> None:
        validate_connection(request)
        _, _, outbound = self._endpoints(request)
        if outbound.required and not request.user_confirmation:
            raise FailedPreconditionError(
                "outbound interface is required, removal needs user confirmation"
            ).with_context(
                organization_id=request.organization_id,
                entity_kind="connection",
                outbound_name=request.outbound_name,
                operation="remove_connection",
            )
        connection = self._require_connection(request)
        if self.list_connection_links(request):
            raise FailedPreconditionError("connection still has links").with_context(
                organization_id=request.organization_id,
                entity_kind="connection",
                entity_id=connection.connection_id,
                operation="remove_connection",
            )
        self.providers.connections.remove(_connection_key(request))
        logger.info(
            "connection_removed",
            organization_id=request.organization_id,
            connection_id=connection.connection_id,
        )

    # ------------------------------------------------------------------ #
    # Links
    # ------------------------------------------------------------------ #

    def add_connection_link(self, request: AddConnectionLinkRequest) -> ConnectionInstanceLink:
        validate_add_connection_link(request)
        self._require_organization(request.organization_id)
        connection = self._require_connection(request)
        link = ConnectionInstanceLink(
            organization_id=request.organization_id,
            connection_id=connection.connection_id,
            source_instance_id=request.source_instance_id,
            source_cluster_id=request.source_cluster_id,
            target_instance_id=request.target_instance_id,
            target_cluster_id=request.target_cluster_id,
            inbound_name=request.inbound_name,
            outbound_name=request.outbound_name,
        )
        self.providers.connection_links.add(link)
        logger.info(
            "connection_link_added",
            organization_id=link.organization_id,
            connection_id=link.connection_id,
            source_cluster_id=link.source_cluster_id,
            target_cluster_id=link.target_cluster_id,
        )
        return link

    def list_connection_links(
        self, request: ConnectionRequest | RemoveConnectionRequest
    ) -> list[ConnectionInstanceLink]:
        validate_connection(request)
        self._require_organization(request.organization_id)
        return [
            link
            for link in self.providers.connection_links.list_by_owner(request.organization_id)
            if _same_connection(link, request)
        ]

    def remove_connection_links(self, request: ConnectionRequest) -> None:
        """Drop every link of a connection, leaving the connection itself."""
        links = self.list_connection_links(request)
        for link in links:
            self.providers.connection_links.remove(CONNECTION_LINKS.key(link))
        logger.info(
            "connection_links_removed",
            organization_id=request.organization_id,
            source_instance_id=request.source_instance_id,
            target_instance_id=request.target_instance_id,
            count=len(links),
        )

    # ------------------------------------------------------------------ #
    # ZeroTier network connections
    # ------------------------------------------------------------------ #

    def add_zt_connection(self, request: AddZTConnectionRequest) -> ZTNetworkConnection:
        validate_zt_connection(request)
        self._require_organization(request.organization_id)
        instance = self._instance(request.organization_id, request.app_instance_id, "member")
        if not instance.has_service(request.service_id):
            raise NotFoundError("service not found in instance").with_context(
                organization_id=request.organization_id,
                entity_kind="service",
                entity_id=request.service_id,
                app_instance_id=request.app_instance_id,
            )
        connection = ZTNetworkConnection(
            organization_id=request.organization_id,
            zt_network_id=request.zt_network_id,
            app_instance_id=request.app_instance_id,
            service_id=request.service_id,
            cluster_id=request.cluster_id,
            zt_member=request.zt_member,
            zt_ip=request.zt_ip,
            side=request.side,
        )
        self.providers.zt_connections.add(connection)
        logger.info(
            "zt_connection_added",
            organization_id=connection.organization_id,
            zt_network_id=connection.zt_network_id,
            app_instance_id=connection.app_instance_id,
        )
        return connection

    def list_zt_connections(self, organization_id: str, zt_network_id: str) -> list[ZTNetworkConnection]:
        require_ids(organization_id=organization_id, zt_network_id=zt_network_id)
        self._require_organization(organization_id)
        return [
            connection
            for connection in self.providers.zt_connections.list_by_owner(organization_id)
            if connection.zt_network_id == zt_network_id
        ]

    def update_zt_connection(self, request: UpdateZTConnectionRequest) -> ZTNetworkConnection:
        validate_zt_connection(request)
        self._require_organization(request.organization_id)
        self._instance(request.organization_id, request.app_instance_id, "member")
        key = composite_key(
            request.organization_id,
            request.zt_network_id,
            request.app_instance_id,
            request.service_id,
            request.cluster_id,
        )
        connection = self.providers.zt_connections.get(key)
        if request.zt_member is not None:
            connection.zt_member = request.zt_member
        if request.zt_ip is not None:
            connection.zt_ip = request.zt_ip
        self.providers.zt_connections.update(connection)
        return connection

    def remove_zt_connections(self, organization_id: str, zt_network_id: str) -> None:
        """Remove every member of one ZeroTier network, inbound and outbound."""
        connections = self.list_zt_connections(organization_id, zt_network_id)
        if not connections:
            raise NotFoundError("zt network not found").with_context(
                organization_id=organization_id, entity_kind="zt_network", entity_id=zt_network_id
            )
        store = self.providers.zt_connections
        for connection in connections:
            store.remove(ZT_CONNECTIONS.key(connection))
        logger.info(
            "zt_connections_removed",
            organization_id=organization_id,
            zt_network_id=zt_network_id,
            count=len(connections),
        )
