"""Tests for NetworkManager: connections, links and ZeroTier members."""

import dataclasses

import pytest

from system_model.core.errors import (
    AlreadyExistsError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
)
from system_model.entities import (
    ConnectionStatus,
    InboundNetworkInterface,
    OutboundNetworkInterface,
    ZTNetworkSide,
)
from system_model.requests import (
    AddAppInstanceRequest,
    AddConnectionLinkRequest,
    AddOrganizationRequest,
    AddServiceGroupInstancesRequest,
    AddServiceInstanceRequest,
    AddZTConnectionRequest,
    ConnectionRequest,
    RemoveConnectionRequest,
    UpdateConnectionRequest,
    UpdateZTConnectionRequest,
)


def _instance(container, descriptor, name):
    return container.applications.add_instance(
        AddAppInstanceRequest(
            organization_id=descriptor.organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
            name=name,
        )
    )


@pytest.fixture
def server(container, descriptor_request):
    descriptor = container.applications.add_descriptor(
        dataclasses.replace(
            descriptor_request,
            name="database",
            inbound_net_interfaces=[InboundNetworkInterface("mysql")],
        )
    )
    return _instance(container, descriptor, "db")


@pytest.fixture
def client(container, descriptor_request):
    descriptor = container.applications.add_descriptor(
        dataclasses.replace(
            descriptor_request,
            name="web",
            outbound_net_interfaces=[
                OutboundNetworkInterface("mysql", required=True),
                OutboundNetworkInterface("cache"),
            ],
        )
    )
    return _instance(container, descriptor, "blog")


def _request(client, server, cls=ConnectionRequest, outbound="mysql", **kwargs):
    return cls(
        organization_id=client.organization_id,
        source_instance_id=client.app_instance_id,
        target_instance_id=server.app_instance_id,
        inbound_name="mysql",
        outbound_name=outbound,
        **kwargs,
    )


@pytest.fixture
def connection(container, client, server):
    return container.network.add_connection(_request(client, server))


def _link(container, client, server):
    return container.network.add_connection_link(
        AddConnectionLinkRequest(
            organization_id=client.organization_id,
            source_instance_id=client.app_instance_id,
            source_cluster_id="c-src",
            target_instance_id=server.app_instance_id,
            target_cluster_id="c-dst",
            inbound_name="mysql",
            outbound_name="mysql",
        )
    )


class TestDescriptorInterfaces:
    def test_duplicate_interface_name(self, container, descriptor_request):
        request = dataclasses.replace(
            descriptor_request,
            inbound_net_interfaces=[InboundNetworkInterface("db"), InboundNetworkInterface("db")],
        )
        with pytest.raises(InvalidArgumentError) as exc_info:
            container.applications.add_descriptor(request)
        assert exc_info.value.field == "inbound_net_interfaces.name"

    def test_same_name_in_both_directions(self, container, descriptor_request):
        descriptor = container.applications.add_descriptor(
            dataclasses.replace(
                descriptor_request,
                inbound_net_interfaces=[InboundNetworkInterface("db")],
                outbound_net_interfaces=[OutboundNetworkInterface("db")],
            )
        )
        instance = _instance(container, descriptor, "x")
        assert instance.find_inbound("db") is not None
        assert instance.find_outbound("db") is not None

    def test_unnamed_interface(self, container, descriptor_request):
        with pytest.raises(InvalidArgumentError):
            container.applications.add_descriptor(
                dataclasses.replace(descriptor_request, outbound_net_interfaces=[OutboundNetworkInterface("")])
            )


class TestConnections:
    def test_add(self, container, client, server, connection):
        assert connection.status == ConnectionStatus.WAITING
        assert connection.outbound_required
        assert (connection.source_instance_name, connection.target_instance_name) == ("blog", "db")
        assert container.network.get_connection(_request(client, server)) == connection
        assert container.network.list_connections(client.organization_id) == [connection]

    def test_added_twice(self, container, client, server, connection):
        with pytest.raises(AlreadyExistsError):
            container.network.add_connection(_request(client, server))

    def test_unknown_outbound(self, container, client, server):
        with pytest.raises(NotFoundError):
            container.network.add_connection(_request(client, server, outbound="smtp"))

    def test_unknown_inbound(self, container, client, server):
        with pytest.raises(NotFoundError):
            container.network.add_connection(
                ConnectionRequest(
                    organization_id=client.organization_id,
                    source_instance_id=client.app_instance_id,
                    target_instance_id=server.app_instance_id,
                    inbound_name="redis",
                    outbound_name="cache",
                )
            )

    def test_reversed_direction(self, container, client, server):
        with pytest.raises(NotFoundError):
            container.network.add_connection(_request(server, client))

    def test_instance_of_other_organization(self, container, client, server):
        other = container.organizations.add_organization(AddOrganizationRequest(name="globex"))
        request = dataclasses.replace(_request(client, server), organization_id=other.organization_id)
        with pytest.raises(NotFoundError):
            container.network.add_connection(request)

    def test_inbound_and_outbound_listing(self, container, client, server, connection):
        org = client.organization_id
        assert container.network.list_inbound_connections(org, server.app_instance_id) == [connection]
        assert container.network.list_outbound_connections(org, server.app_instance_id) == []
        assert container.network.list_outbound_connections(org, client.app_instance_id) == [connection]
        assert container.network.list_inbound_connections(org, client.app_instance_id) == []

    def test_update(self, container, client, server, connection):
        updated = container.network.update_connection(
            _request(
                client,
                server,
                cls=UpdateConnectionRequest,
                status=ConnectionStatus.ESTABLISHED,
                ip_range="10.1.0.0/24",
                zt_network_id="zt-1",
            )
        )
        assert updated.status == ConnectionStatus.ESTABLISHED
        stored = container.network.get_connection(_request(client, server))
        assert stored == updated
        assert (stored.ip_range, stored.zt_network_id) == ("10.1.0.0/24", "zt-1")

    def test_update_missing(self, container, client, server):
        with pytest.raises(NotFoundError):
            container.network.update_connection(_request(client, server, cls=UpdateConnectionRequest))


class TestRemoveConnection:
    def test_required_outbound_needs_confirmation(self, container, client, server, connection):
        with pytest.raises(FailedPreconditionError):
            container.network.remove_connection(_request(client, server, cls=RemoveConnectionRequest))
        assert container.network.list_connections(client.organization_id) == [connection]

        container.network.remove_connection(
            _request(client, server, cls=RemoveConnectionRequest, user_confirmation=True)
        )
        assert container.network.list_connections(client.organization_id) == []

    def test_optional_outbound_needs_no_confirmation(self, container, client, descriptor_request):
        descriptor = container.applications.add_descriptor(
            dataclasses.replace(
                descriptor_request, name="cache", inbound_net_interfaces=[InboundNetworkInterface("mysql")]
            )
        )
        cache = _instance(container, descriptor, "redis")
        container.network.add_connection(_request(client, cache, outbound="cache"))
        container.network.remove_connection(_request(client, cache, cls=RemoveConnectionRequest, outbound="cache"))
        assert container.network.list_connections(client.organization_id) == []

    def test_refused_while_linked(self, container, client, server, connection):
        _link(container, client, server)
        request = _request(client, server, cls=RemoveConnectionRequest, user_confirmation=True)
        with pytest.raises(FailedPreconditionError):
            container.network.remove_connection(request)

        container.network.remove_connection_links(_request(client, server))
        container.network.remove_connection(request)
        assert container.network.list_connections(client.organization_id) == []

    def test_instances_kept_while_connected(self, container, client, server, connection):
        with pytest.raises(FailedPreconditionError):
            container.applications.remove_instance(server.organization_id, server.app_instance_id)
        with pytest.raises(FailedPreconditionError):
            container.applications.remove_instance(client.organization_id, client.app_instance_id)

        container.network.remove_connection(
            _request(client, server, cls=RemoveConnectionRequest, user_confirmation=True)
        )
        container.applications.remove_instance(server.organization_id, server.app_instance_id)


class TestLinks:
    def test_add_list(self, container, client, server, connection):
        link = _link(container, client, server)
        assert link.connection_id == connection.connection_id
        assert container.network.list_connection_links(_request(client, server)) == [link]

    def test_link_needs_connection(self, container, client, server):
        with pytest.raises(NotFoundError):
            _link(container, client, server)


class TestZTConnections:
    @pytest.fixture
    def service_id(self, container, server):
        snapshot_group = container.applications.get_descriptor(
            server.organization_id, server.app_descriptor_id
        ).groups[1]
        [group_instance] = container.applications.add_service_group_instances(
            AddServiceGroupInstancesRequest(
                organization_id=server.organization_id,
                app_descriptor_id=server.app_descriptor_id,
                app_instance_id=server.app_instance_id,
                service_group_id=snapshot_group.service_group_id,
            )
        )
        service_id = snapshot_group.services[0].service_id
        container.applications.add_service_instance(
            AddServiceInstanceRequest(
                organization_id=server.organization_id,
                app_descriptor_id=server.app_descriptor_id,
                app_instance_id=server.app_instance_id,
                service_group_id=group_instance.service_group_id,
                service_group_instance_id=group_instance.service_group_instance_id,
                service_id=service_id,
            )
        )
        return service_id

    def _add(self, container, server, service_id, cluster_id="c1", side=ZTNetworkSide.INBOUND):
        return container.network.add_zt_connection(
            AddZTConnectionRequest(
                organization_id=server.organization_id,
                zt_network_id="zt-1",
                app_instance_id=server.app_instance_id,
                service_id=service_id,
                cluster_id=cluster_id,
                zt_member="m-1",
                zt_ip="10.9.0.1",
                side=side,
            )
        )

    def test_add_list(self, container, server, service_id):
        inbound = self._add(container, server, service_id)
        outbound = self._add(container, server, service_id, cluster_id="c2", side=ZTNetworkSide.OUTBOUND)
        members = container.network.list_zt_connections(server.organization_id, "zt-1")
        assert sorted(m.cluster_id for m in members) == ["c1", "c2"]
        assert inbound in members and outbound in members
        assert container.network.list_zt_connections(server.organization_id, "zt-2") == []

    def test_service_must_run_in_instance(self, container, server, service_id):
        with pytest.raises(NotFoundError):
            self._add(container, server, "ghost-service")

    def test_update(self, container, server, service_id):
        self._add(container, server, service_id)
        updated = container.network.update_zt_connection(
            UpdateZTConnectionRequest(
                organization_id=server.organization_id,
                zt_network_id="zt-1",
                app_instance_id=server.app_instance_id,
                service_id=service_id,
                cluster_id="c1",
                zt_ip="10.9.0.7",
            )
        )
        assert (updated.zt_member, updated.zt_ip) == ("m-1", "10.9.0.7")
        assert container.network.list_zt_connections(server.organization_id, "zt-1") == [updated]

    def test_remove_network(self, container, server, service_id):
        self._add(container, server, service_id)
        self._add(container, server, service_id, cluster_id="c2")
        container.network.remove_zt_connections(server.organization_id, "zt-1")
        assert container.network.list_zt_connections(server.organization_id, "zt-1") == []
        with pytest.raises(NotFoundError):
            container.network.remove_zt_connections(server.organization_id, "zt-1")
