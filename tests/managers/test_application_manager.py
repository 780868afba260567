"""Tests for ApplicationManager: descriptors, instances and the instance aggregate."""

import dataclasses

import pytest
from structlog.testing import capture_logs

from system_model.core.errors import (
    ConflictError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
)
from system_model.entities import (
    ApplicationStatus,
    ChildKind,
    EndpointInstance,
    EndpointType,
    InstanceParameter,
    SecurityRule,
    Service,
    ServiceGroup,
    ServiceStatus,
)
from system_model.requests import (
    AddAppInstanceRequest,
    AddDeviceGroupRequest,
    AddServiceGroupInstancesRequest,
    AddServiceInstanceRequest,
    UpdateAppDescriptorRequest,
    UpdateAppStatusRequest,
    UpdateServiceStatusRequest,
)


@pytest.fixture
def instance(container, descriptor):
    return container.applications.add_instance(
        AddAppInstanceRequest(
            organization_id=descriptor.organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
            name="blog",
            parameters=[InstanceParameter("replicas", "3")],
        )
    )


def _group(descriptor, name):
    return next(group for group in descriptor.groups if group.name == name)


def _add_group_instances(container, instance, service_group_id, num_instances=1):
    return container.applications.add_service_group_instances(
        AddServiceGroupInstancesRequest(
            organization_id=instance.organization_id,
            app_descriptor_id=instance.app_descriptor_id,
            app_instance_id=instance.app_instance_id,
            service_group_id=service_group_id,
            num_instances=num_instances,
        )
    )


def _add_service_instance(container, instance, group_instance, service_id):
    return container.applications.add_service_instance(
        AddServiceInstanceRequest(
            organization_id=instance.organization_id,
            app_descriptor_id=instance.app_descriptor_id,
            app_instance_id=instance.app_instance_id,
            service_group_id=group_instance.service_group_id,
            service_group_instance_id=group_instance.service_group_instance_id,
            service_id=service_id,
        )
    )


# =============================================================================
# Descriptors
# =============================================================================


class TestAddDescriptor:
    def test_assigns_ids_and_ownership(self, container, providers, descriptor):
        ids = {descriptor.app_descriptor_id}
        for group in descriptor.groups:
            assert group.app_descriptor_id == descriptor.app_descriptor_id
            assert group.organization_id == descriptor.organization_id
            ids.add(group.service_group_id)
            for service in group.services:
                assert service.service_group_id == group.service_group_id
                ids.add(service.service_id)
        ids.add(descriptor.rules[0].rule_id)
        assert len(ids) == 7
        assert "" not in ids
        assert providers.organizations.child_exists(
            ChildKind.DESCRIPTOR, descriptor.organization_id, descriptor.app_descriptor_id
        )
        assert (
            container.applications.get_descriptor(descriptor.organization_id, descriptor.app_descriptor_id)
            == descriptor
        )

    def test_keeps_supplied_group_ids(self, container, descriptor_request):
        group = dataclasses.replace(descriptor_request.groups[0], service_group_id="frontend-id")
        request = dataclasses.replace(descriptor_request, groups=[group])
        created = container.applications.add_descriptor(request)
        assert created.groups[0].service_group_id == "frontend-id"

    def test_request_not_mutated(self, container, descriptor_request, descriptor):
        assert descriptor_request.groups[0].service_group_id == ""

    @pytest.mark.parametrize(
        "groups",
        [
            [],
            [ServiceGroup(name="g", services=[])],
            [ServiceGroup(name="g", services=[Service(name="a", image="x"), Service(name="a", image="y")])],
            [ServiceGroup(name="g", services=[Service(name="a", image="")])],
        ],
    )
    def test_invalid_groups(self, container, providers, descriptor_request, groups):
        with pytest.raises(InvalidArgumentError):
            container.applications.add_descriptor(dataclasses.replace(descriptor_request, groups=groups))
        assert providers.descriptors.list_by_owner(descriptor_request.organization_id) == []

    def test_unknown_organization(self, container, descriptor_request):
        with pytest.raises(NotFoundError):
            container.applications.add_descriptor(
                dataclasses.replace(descriptor_request, organization_id="ghost")
            )

    def test_index_failure_is_not_rolled_back(self, container, providers, descriptor_request, inject_failure):
        inject_failure("organizations", "add_child")
        with capture_logs() as logs, pytest.raises(StorageError):
            container.applications.add_descriptor(descriptor_request)

        organization_id = descriptor_request.organization_id
        assert len(providers.descriptors.list_by_owner(organization_id)) == 1
        assert container.applications.list_descriptors(organization_id) == []
        assert any(e["event"] == "descriptor_registration_failed" for e in logs)


class TestDescriptorLifecycle:
    def test_list(self, container, descriptor):
        assert container.applications.list_descriptors(descriptor.organization_id) == [descriptor]

    def test_update(self, container, descriptor):
        updated = container.applications.update_descriptor(
            UpdateAppDescriptorRequest(
                organization_id=descriptor.organization_id,
                app_descriptor_id=descriptor.app_descriptor_id,
                name="wordpress-2",
                add_labels={"tier": "gold"},
                remove_labels=["app"],
            )
        )
        assert updated.name == "wordpress-2"
        assert updated.labels == {"tier": "gold"}
        assert updated.groups == descriptor.groups

    def test_remove(self, container, providers, descriptor):
        container.applications.remove_descriptor(descriptor.organization_id, descriptor.app_descriptor_id)
        assert container.applications.list_descriptors(descriptor.organization_id) == []
        assert not providers.descriptors.exists(descriptor.app_descriptor_id)

    def test_remove_missing(self, container, org):
        with pytest.raises(NotFoundError):
            container.applications.remove_descriptor(org.organization_id, "ghost")


# =============================================================================
# Instances
# =============================================================================


class TestAddInstance:
    def test_initial_state(self, container, descriptor, instance, clock):
        assert instance.status == ApplicationStatus.DEPLOYING
        assert instance.groups == []
        assert instance.created == clock.now
        assert instance.configuration_options == {"replicas": "3"}
        assert instance.labels == {"app": "wordpress"}
        assert (
            container.applications.get_instance(instance.organization_id, instance.app_instance_id) == instance
        )
        assert container.applications.list_instances(instance.organization_id) == [instance]

    def test_snapshot_and_parameters_stored(self, container, descriptor, instance):
        snapshot = container.applications.get_parametrized_descriptor(
            instance.organization_id, instance.app_instance_id
        )
        assert snapshot.app_instance_id == instance.app_instance_id
        assert snapshot.configuration_options == {"replicas": "3"}
        assert snapshot.groups == descriptor.groups

        params = container.applications.get_instance_parameters(instance.organization_id, instance.app_instance_id)
        assert params.parameters == [InstanceParameter("replicas", "3")]

    def test_no_parameters(self, container, providers, descriptor):
        plain = container.applications.add_instance(
            AddAppInstanceRequest(
                organization_id=descriptor.organization_id,
                app_descriptor_id=descriptor.app_descriptor_id,
                name="plain",
            )
        )
        assert not providers.instance_parameters.exists(plain.app_instance_id)
        params = container.applications.get_instance_parameters(plain.organization_id, plain.app_instance_id)
        assert params.parameters == []

    def test_unknown_descriptor(self, container, providers, org):
        with pytest.raises(NotFoundError):
            container.applications.add_instance(
                AddAppInstanceRequest(organization_id=org.organization_id, app_descriptor_id="ghost", name="x")
            )
        assert providers.instances.list_by_owner(org.organization_id) == []

    def test_resolves_device_group_names(self, container, descriptor_request):
        sensors = container.devices.add_device_group(
            AddDeviceGroupRequest(organization_id=descriptor_request.organization_id, name="sensors")
        )
        rule = SecurityRule(name="ingest", device_group_names=["sensors"])
        descriptor = container.applications.add_descriptor(dataclasses.replace(descriptor_request, rules=[rule]))
        created = container.applications.add_instance(
            AddAppInstanceRequest(
                organization_id=descriptor.organization_id,
                app_descriptor_id=descriptor.app_descriptor_id,
                name="ingest",
            )
        )
        snapshot = container.applications.get_parametrized_descriptor(
            created.organization_id, created.app_instance_id
        )
        assert snapshot.rules[0].device_group_ids == [sensors.device_group_id]

    def test_unknown_device_group_name(self, container, providers, descriptor_request):
        rule = SecurityRule(name="ingest", device_group_names=["cameras"])
        descriptor = container.applications.add_descriptor(dataclasses.replace(descriptor_request, rules=[rule]))
        with pytest.raises(NotFoundError):
            container.applications.add_instance(
                AddAppInstanceRequest(
                    organization_id=descriptor.organization_id,
                    app_descriptor_id=descriptor.app_descriptor_id,
                    name="ingest",
                )
            )
        assert providers.instances.list_by_owner(descriptor.organization_id) == []

    @pytest.mark.parametrize(
        ("attr", "method"),
        [
            ("organizations", "add_child"),
            ("parametrized_descriptors", "add"),
            ("instance_parameters", "add"),
        ],
    )
    def test_registration_failure_discards_instance(
        self, container, providers, descriptor, inject_failure, attr, method
    ):
        inject_failure(attr, method)
        with capture_logs() as logs, pytest.raises(StorageError):
            container.applications.add_instance(
                AddAppInstanceRequest(
                    organization_id=descriptor.organization_id,
                    app_descriptor_id=descriptor.app_descriptor_id,
                    name="blog",
                    parameters=[InstanceParameter("replicas", "3")],
                )
            )

        organization_id = descriptor.organization_id
        assert providers.instances.list_by_owner(organization_id) == []
        assert providers.parametrized_descriptors.list_by_owner(organization_id) == []
        assert providers.instance_parameters.list_by_owner(organization_id) == []
        assert providers.organizations.list_children(ChildKind.INSTANCE, organization_id) == []
        assert any(e["event"] == "rollback_succeeded" for e in logs)


class TestServiceGroupInstances:
    def test_add_two(self, container, providers, descriptor, instance):
        frontend = _group(descriptor, "frontend")
        created = _add_group_instances(container, instance, frontend.service_group_id, num_instances=2)

        assert len(created) == 2
        assert created[0].service_group_instance_id != created[1].service_group_instance_id
        for group_instance in created:
            assert group_instance.name == "frontend"
            assert group_instance.app_instance_id == instance.app_instance_id
            assert group_instance.status == ServiceStatus.SCHEDULED
            assert group_instance.metadata.desired_replicas == 2
            assert group_instance.metadata.monitored_instance_id == group_instance.service_group_instance_id
            assert group_instance.service_instances == []

        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert stored.groups == created
        assert stored.version == 1

    def test_appends(self, container, descriptor, instance):
        _add_group_instances(container, instance, _group(descriptor, "frontend").service_group_id)
        _add_group_instances(container, instance, _group(descriptor, "backend").service_group_id)
        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert [g.name for g in stored.groups] == ["frontend", "backend"]

    def test_unknown_group(self, container, instance):
        with pytest.raises(NotFoundError):
            _add_group_instances(container, instance, "ghost")

    def test_zero_instances(self, container, descriptor, instance):
        with pytest.raises(InvalidArgumentError):
            _add_group_instances(container, instance, _group(descriptor, "frontend").service_group_id, 0)

    def test_instance_of_other_descriptor(self, container, descriptor, descriptor_request, instance):
        other = container.applications.add_descriptor(dataclasses.replace(descriptor_request, name="other"))
        with pytest.raises(NotFoundError):
            container.applications.add_service_group_instances(
                AddServiceGroupInstancesRequest(
                    organization_id=instance.organization_id,
                    app_descriptor_id=other.app_descriptor_id,
                    app_instance_id=instance.app_instance_id,
                    service_group_id=_group(descriptor, "frontend").service_group_id,
                )
            )

    def test_uses_snapshot_not_live_descriptor(self, container, descriptor, instance):
        old_frontend = _group(descriptor, "frontend")
        edited = container.applications.update_descriptor(
            UpdateAppDescriptorRequest(
                organization_id=descriptor.organization_id,
                app_descriptor_id=descriptor.app_descriptor_id,
                groups=[ServiceGroup(name="worker", services=[Service(name="celery", image="celery:5")])],
            )
        )

        created = _add_group_instances(container, instance, old_frontend.service_group_id)
        assert created[0].name == "frontend"
        with pytest.raises(NotFoundError):
            _add_group_instances(container, instance, edited.groups[0].service_group_id)

    def test_remove_all(self, container, descriptor, instance):
        _add_group_instances(container, instance, _group(descriptor, "frontend").service_group_id, 3)
        cleared = container.applications.remove_service_group_instances(
            instance.organization_id, instance.app_instance_id
        )
        assert cleared.groups == []
        assert container.applications.get_instance(instance.organization_id, instance.app_instance_id).groups == []


class TestServiceInstances:
    def test_add(self, container, descriptor, instance):
        frontend = _group(descriptor, "frontend")
        nginx = frontend.find_service(frontend.services[0].service_id)
        [group_instance] = _add_group_instances(container, instance, frontend.service_group_id)

        service_instance = _add_service_instance(container, instance, group_instance, nginx.service_id)
        assert service_instance.name == "nginx"
        assert service_instance.image == "nginx:1.25"
        assert service_instance.exposed_ports == nginx.exposed_ports
        assert service_instance.status == ServiceStatus.SCHEDULED

        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert stored.groups[0].service_instances == [service_instance]

    def test_unknown_service(self, container, descriptor, instance):
        [group_instance] = _add_group_instances(container, instance, _group(descriptor, "frontend").service_group_id)
        with pytest.raises(NotFoundError):
            _add_service_instance(container, instance, group_instance, "ghost")

    def test_service_from_another_group(self, container, descriptor, instance):
        mysql = _group(descriptor, "backend").services[0]
        [group_instance] = _add_group_instances(container, instance, _group(descriptor, "frontend").service_group_id)
        with pytest.raises(NotFoundError):
            _add_service_instance(container, instance, group_instance, mysql.service_id)

    def test_group_instance_must_match_group(self, container, descriptor, instance):
        frontend = _group(descriptor, "frontend")
        backend = _group(descriptor, "backend")
        [frontend_instance] = _add_group_instances(container, instance, frontend.service_group_id)
        mismatched = dataclasses.replace(frontend_instance, service_group_id=backend.service_group_id)
        with pytest.raises(NotFoundError):
            _add_service_instance(container, instance, mismatched, backend.services[0].service_id)


class TestStatusUpdates:
    def test_update_service_status(self, container, descriptor, instance):
        frontend = _group(descriptor, "frontend")
        [group_instance] = _add_group_instances(container, instance, frontend.service_group_id)
        service_instance = _add_service_instance(
            container, instance, group_instance, frontend.services[0].service_id
        )

        endpoint = EndpointInstance(endpoint_instance_id="e1", type=EndpointType.WEB, fqdn="blog.acme.io", port=80)
        updated = container.applications.update_service_status(
            UpdateServiceStatusRequest(
                organization_id=instance.organization_id,
                app_instance_id=instance.app_instance_id,
                service_group_instance_id=group_instance.service_group_instance_id,
                service_instance_id=service_instance.service_instance_id,
                status=ServiceStatus.RUNNING,
                endpoints=[endpoint],
                deployed_on_cluster_id="c1",
            )
        )
        assert updated.status == ServiceStatus.RUNNING

        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        stored_service = stored.find_service_instance(
            group_instance.service_group_instance_id, service_instance.service_instance_id
        )
        assert stored_service.endpoints == [endpoint]
        assert stored_service.deployed_on_cluster_id == "c1"

    def test_unknown_service_instance_is_internal(self, container, instance):
        with pytest.raises(InternalError):
            container.applications.update_service_status(
                UpdateServiceStatusRequest(
                    organization_id=instance.organization_id,
                    app_instance_id=instance.app_instance_id,
                    service_group_instance_id="ghost",
                    service_instance_id="ghost",
                    status=ServiceStatus.RUNNING,
                )
            )

    def test_update_instance_status(self, container, instance):
        container.applications.update_instance_status(
            UpdateAppStatusRequest(
                organization_id=instance.organization_id,
                app_instance_id=instance.app_instance_id,
                status=ApplicationStatus.RUNNING,
                info="all services up",
            )
        )
        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert stored.status == ApplicationStatus.RUNNING
        assert stored.info == "all services up"


class TestConcurrentRewrite:
    def test_stale_rewrite_conflicts(self, container, providers, descriptor, instance, before_update):
        raw = providers.instances
        frontend = _group(descriptor, "frontend")

        def concurrent_writer():
            current = raw.get(instance.app_instance_id)
            current.info = "other writer"
            raw.update(current)

        before_update("instances", concurrent_writer)
        with pytest.raises(ConflictError) as exc_info:
            _add_group_instances(container, instance, frontend.service_group_id)
        assert exc_info.value.retryable

        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert stored.info == "other writer"
        assert stored.groups == []

        # Retrying after the conflict sees the other writer's change
        _add_group_instances(container, instance, frontend.service_group_id)
        stored = container.applications.get_instance(instance.organization_id, instance.app_instance_id)
        assert stored.info == "other writer"
        assert len(stored.groups) == 1


class TestRemoveInstance:
    def test_remove(self, container, providers, instance):
        container.applications.remove_instance(instance.organization_id, instance.app_instance_id)
        assert container.applications.list_instances(instance.organization_id) == []
        assert not providers.instances.exists(instance.app_instance_id)
        assert not providers.parametrized_descriptors.exists(instance.app_instance_id)
        assert not providers.instance_parameters.exists(instance.app_instance_id)

    def test_cleanup_failure_does_not_fail_remove(self, container, providers, instance, inject_failure):
        inject_failure("parametrized_descriptors", "remove")
        with capture_logs() as logs:
            container.applications.remove_instance(instance.organization_id, instance.app_instance_id)
        assert not providers.instances.exists(instance.app_instance_id)
        assert not providers.instance_parameters.exists(instance.app_instance_id)
        assert any(e["event"] == "cleanup_failed" for e in logs)

    def test_store_failure_keeps_index(self, container, providers, instance, inject_failure):
        inject_failure("instances", "remove")
        with pytest.raises(StorageError):
            container.applications.remove_instance(instance.organization_id, instance.app_instance_id)
        assert providers.organizations.child_exists(
            ChildKind.INSTANCE, instance.organization_id, instance.app_instance_id
        )
        assert container.applications.get_instance(instance.organization_id, instance.app_instance_id) == instance

    def test_remove_missing(self, container, org):
        with pytest.raises(NotFoundError):
            container.applications.remove_instance(org.organization_id, "ghost")
