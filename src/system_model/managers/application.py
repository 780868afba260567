"""
Application aggregate manager.

Manifesto:
    An application instance is one document. Service group instances and
    service instances arrive over several calls, and every call reads the
    whole instance, changes it in memory and writes the whole instance
    back. Sub-documents are never persisted on their own, so a reader
    can't observe a service group instance without its parent.

    The rewrite is guarded by the instance ``version``: if another writer
    got in between the read and the write, the store raises
    ``ConflictError`` and nothing is lost. The caller re-reads and retries.

Architecture:
    ::

        add_descriptor ──► descriptors store ──► index (no rollback)
        add_instance   ──► instances store ──► index + snapshot + parameters
                                              (failure: instance discarded)
        add_service_group_instances
            snapshot.find_group ──► append N group instances ──► rewrite
        add_service_instance
            live descriptor group.service ──► append to group instance ──► rewrite
        update_service_status
            find (group instance, service instance) ──► mutate ──► rewrite
        remove_instance ──► instances store ──► index ──► snapshot/parameters

Tags:
    application, aggregate, compensation, optimistic-concurrency, system-model
"""

from __future__ import annotations

import copy

from system_model.core.compensation import DualWrite, best_effort
from system_model.core.errors import FailedPreconditionError, InternalError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import (
    AppDescriptor,
    AppInstance,
    ApplicationStatus,
    ChildKind,
    InstanceMetadata,
    InstanceParameters,
    ParametrizedDescriptor,
    SecurityRule,
    ServiceGroup,
    ServiceGroupInstance,
    ServiceInstance,
    ServiceStatus,
)
from system_model.managers.base import OrganizationChildManager
from system_model.requests import (
    AddAppDescriptorRequest,
    AddAppInstanceRequest,
    AddServiceGroupInstancesRequest,
    AddServiceInstanceRequest,
    UpdateAppDescriptorRequest,
    UpdateAppStatusRequest,
    UpdateServiceStatusRequest,
)
from system_model.validation import (
    require_ids,
    validate_add_descriptor,
    validate_add_instance,
    validate_add_service_group_instances,
    validate_add_service_instance,
    validate_update_app_status,
    validate_update_descriptor,
    validate_update_service_status,
)

logger = get_logger(__name__)


def _remove_if_present(store, key: str) -> None:
    if store.exists(key):
        store.remove(key)


class DescriptorManager(OrganizationChildManager):
    """Descriptors half of the application manager."""

    child_kind = ChildKind.DESCRIPTOR
    store_name = "descriptors"


class ApplicationManager(OrganizationChildManager):
    child_kind = ChildKind.INSTANCE
    store_name = "instances"

    def __init__(self, providers, **kwargs) -> None:
        super().__init__(providers, **kwargs)
        self._descriptors = DescriptorManager(providers, **kwargs)

    # ------------------------------------------------------------------ #
    # Descriptors
    # ------------------------------------------------------------------ #

    def _assign_group_ids(
        self, organization_id: str, app_descriptor_id: str, groups: list[ServiceGroup]
    ) -> list[ServiceGroup]:
        """Copy *groups*, stamping ownership and generating missing identifiers."""
        assigned = copy.deepcopy(groups)
        for group in assigned:
            group.organization_id = organization_id
            group.app_descriptor_id = app_descriptor_id
            group.service_group_id = group.service_group_id or self._new_id()
            for service in group.services:
                service.organization_id = organization_id
                service.app_descriptor_id = app_descriptor_id
                service.service_group_id = group.service_group_id
                service.service_id = service.service_id or self._new_id()
        return assigned

    def _assign_rule_ids(
        self, organization_id: str, app_descriptor_id: str, rules: list[SecurityRule]
    ) -> list[SecurityRule]:
        assigned = copy.deepcopy(rules)
        for rule in assigned:
            rule.organization_id = organization_id
            rule.app_descriptor_id = app_descriptor_id
            rule.rule_id = rule.rule_id or self._new_id()
        return assigned

    def add_descriptor(self, request: AddAppDescriptorRequest) -> AppDescriptor:
        """Store a descriptor and register it in the Organization Index.

        A failed registration does not roll the descriptor back: nothing
        outside the registry has observed it yet, and re-adding is safe.
        """
        validate_add_descriptor(request)
        self._require_organization(request.organization_id)
        app_descriptor_id = self._new_id()
        descriptor = AppDescriptor(
            organization_id=request.organization_id,
            app_descriptor_id=app_descriptor_id,
            name=request.name,
            configuration_options=dict(request.configuration_options),
            environment_variables=dict(request.environment_variables),
            labels=dict(request.labels),
            rules=self._assign_rule_ids(request.organization_id, app_descriptor_id, request.rules),
            groups=self._assign_group_ids(request.organization_id, app_descriptor_id, request.groups),
            inbound_net_interfaces=copy.deepcopy(request.inbound_net_interfaces),
            outbound_net_interfaces=copy.deepcopy(request.outbound_net_interfaces),
        )
        self.providers.descriptors.add(descriptor)
        try:
            self.providers.organizations.add_child(
                ChildKind.DESCRIPTOR, descriptor.organization_id, app_descriptor_id
            )
        except Exception as exc:
            logger.error(
                "descriptor_registration_failed",
                organization_id=descriptor.organization_id,
                app_descriptor_id=app_descriptor_id,
                error=str(exc),
            )
            raise
        logger.info(
            "descriptor_added",
            organization_id=descriptor.organization_id,
            app_descriptor_id=app_descriptor_id,
        )
        return descriptor

    def get_descriptor(self, organization_id: str, app_descriptor_id: str) -> AppDescriptor:
        require_ids(organization_id=organization_id, app_descriptor_id=app_descriptor_id)
        return self._descriptors._lookup(organization_id, app_descriptor_id)

    def list_descriptors(self, organization_id: str) -> list[AppDescriptor]:
        require_ids(organization_id=organization_id)
        return self._descriptors._list(organization_id)

    def update_descriptor(self, request: UpdateAppDescriptorRequest) -> AppDescriptor:
        """Edit a descriptor. Existing instances keep their own snapshot."""
        validate_update_descriptor(request)
        descriptor: AppDescriptor = self._descriptors._lookup(
            request.organization_id, request.app_descriptor_id
        )
        if request.name is not None:
            descriptor.name = request.name
        descriptor.labels.update(request.add_labels)
        for key in request.remove_labels:
            descriptor.labels.pop(key, None)
        if request.configuration_options is not None:
            descriptor.configuration_options = dict(request.configuration_options)
        if request.environment_variables is not None:
            descriptor.environment_variables = dict(request.environment_variables)
        if request.groups is not None:
            descriptor.groups = self._assign_group_ids(
                descriptor.organization_id, descriptor.app_descriptor_id, request.groups
            )
        self.providers.descriptors.update(descriptor)
        logger.info(
            "descriptor_updated",
            organization_id=descriptor.organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
        )
        return descriptor

    def remove_descriptor(self, organization_id: str, app_descriptor_id: str) -> None:
        require_ids(organization_id=organization_id, app_descriptor_id=app_descriptor_id)
        self._descriptors._unregister_store_first("remove_descriptor", organization_id, app_descriptor_id)
        logger.info("descriptor_removed", organization_id=organization_id, app_descriptor_id=app_descriptor_id)

    # ------------------------------------------------------------------ #
    # Instances
    # ------------------------------------------------------------------ #

    def _resolve_device_groups(self, organization_id: str, rules: list[SecurityRule]) -> None:
        """Fill ``device_group_ids`` from ``device_group_names`` in place."""
        if not any(rule.device_group_names for rule in rules):
            return
        by_name = {
            group.name: group.device_group_id
            for group in self.providers.device_groups.list_by_owner(organization_id)
        }
        for rule in rules:
            ids = []
            for name in rule.device_group_names:
                if name not in by_name:
                    raise NotFoundError("device group not found").with_context(
                        organization_id=organization_id,
                        entity_kind="device_group",
                        operation="add_instance",
                        device_group_name=name,
                    )
                ids.append(by_name[name])
            rule.device_group_ids = ids

    def add_instance(self, request: AddAppInstanceRequest) -> AppInstance:
        """Create an instance of a descriptor.

        The instance starts with no service group instances and status
        ``DEPLOYING``. Its parametrized descriptor snapshot, and its
        parameters when supplied, are stored with it; if any of those
        writes fails the instance is discarded from both the store and the
        index.
        """
        validate_add_instance(request)
        organization_id = request.organization_id
        descriptor = self.get_descriptor(organization_id, request.app_descriptor_id)

        app_instance_id = self._new_id()
        snapshot = ParametrizedDescriptor.from_descriptor(descriptor, app_instance_id, request.parameters)
        self._resolve_device_groups(organization_id, snapshot.rules)
        instance = AppInstance(
            organization_id=organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
            app_instance_id=app_instance_id,
            name=request.name,
            configuration_options=dict(snapshot.configuration_options),
            environment_variables=dict(snapshot.environment_variables),
            labels=dict(descriptor.labels),
            status=ApplicationStatus.DEPLOYING,
            created=self._now(),
            inbound_net_interfaces=copy.deepcopy(snapshot.inbound_net_interfaces),
            outbound_net_interfaces=copy.deepcopy(snapshot.outbound_net_interfaces),
        )
        parameters = None
        if request.parameters:
            parameters = InstanceParameters(
                organization_id=organization_id,
                app_instance_id=app_instance_id,
                parameters=copy.deepcopy(request.parameters),
            )

        def register() -> None:
            self.providers.organizations.add_child(ChildKind.INSTANCE, organization_id, app_instance_id)
            self.providers.parametrized_descriptors.add(snapshot)
            if parameters is not None:
                self.providers.instance_parameters.add(parameters)

        DualWrite(
            operation="add_instance",
            primary=lambda: self.providers.instances.add(instance),
            secondary=register,
            compensate=lambda: self._discard_instance(organization_id, app_instance_id),
            context={"organization_id": organization_id, "app_instance_id": app_instance_id},
        ).run()
        logger.info(
            "instance_added",
            organization_id=organization_id,
            app_descriptor_id=descriptor.app_descriptor_id,
            app_instance_id=app_instance_id,
        )
        return instance

    def _discard_instance(self, organization_id: str, app_instance_id: str) -> None:
        """Undo a partially registered instance."""
        providers = self.providers
        if providers.instance_parameters.exists(app_instance_id):
            providers.instance_parameters.remove(app_instance_id)
        if providers.parametrized_descriptors.exists(app_instance_id):
            providers.parametrized_descriptors.remove(app_instance_id)
        if providers.organizations.child_exists(ChildKind.INSTANCE, organization_id, app_instance_id):
            providers.organizations.delete_child(ChildKind.INSTANCE, organization_id, app_instance_id)
        providers.instances.remove(app_instance_id)

    def get_instance(self, organization_id: str, app_instance_id: str) -> AppInstance:
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        return self._lookup(organization_id, app_instance_id)

    def list_instances(self, organization_id: str) -> list[AppInstance]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def get_parametrized_descriptor(
        self, organization_id: str, app_instance_id: str
    ) -> ParametrizedDescriptor:
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_child(organization_id, app_instance_id)
        return self.providers.parametrized_descriptors.get(app_instance_id)

    def get_instance_parameters(self, organization_id: str, app_instance_id: str) -> InstanceParameters:
        """Parameters supplied at creation; empty when none were given."""
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_child(organization_id, app_instance_id)
        store = self.providers.instance_parameters
        if not store.exists(app_instance_id):
            return InstanceParameters(organization_id=organization_id, app_instance_id=app_instance_id)
        return store.get(app_instance_id)

    def _instance_of(
        self, organization_id: str, app_descriptor_id: str, app_instance_id: str
    ) -> AppInstance:
        if not self.providers.organizations.child_exists(
            ChildKind.DESCRIPTOR, organization_id, app_descriptor_id
        ):
            raise self._descriptors._not_in_index(organization_id, app_descriptor_id)
        instance: AppInstance = self._lookup(organization_id, app_instance_id)
        if instance.app_descriptor_id != app_descriptor_id:
            raise NotFoundError("instance does not belong to descriptor").with_context(
                organization_id=organization_id,
                entity_kind="instance",
                entity_id=app_instance_id,
                app_descriptor_id=app_descriptor_id,
            )
        return instance

    def add_service_group_instances(
        self, request: AddServiceGroupInstancesRequest
    ) -> list[ServiceGroupInstance]:
        """Instantiate a service group of the instance snapshot N times.

        The group is looked up in the parametrized descriptor bound to the
        instance, never in the live descriptor.
        """
        validate_add_service_group_instances(request)
        organization_id = request.organization_id
        instance = self._instance_of(organization_id, request.app_descriptor_id, request.app_instance_id)
        snapshot = self.providers.parametrized_descriptors.get(request.app_instance_id)
        group = snapshot.find_group(request.service_group_id)
        if group is None:
            raise NotFoundError("service group not found in parametrized descriptor").with_context(
                organization_id=organization_id,
                entity_kind="service_group",
                entity_id=request.service_group_id,
                app_instance_id=request.app_instance_id,
            )

        created = []
        for _ in range(request.num_instances):
            service_group_instance_id = self._new_id()
            created.append(
                ServiceGroupInstance(
                    organization_id=organization_id,
                    app_descriptor_id=instance.app_descriptor_id,
                    app_instance_id=instance.app_instance_id,
                    service_group_id=group.service_group_id,
                    service_group_instance_id=service_group_instance_id,
                    name=group.name,
                    policy=group.policy,
                    status=ServiceStatus.SCHEDULED,
                    metadata=InstanceMetadata(
                        monitored_instance_id=service_group_instance_id,
                        desired_replicas=request.num_instances,
                        available_replicas=0,
                        unavailable_replicas=0,
                    ),
                    specs=copy.deepcopy(group.specs),
                    labels=dict(group.labels),
                )
            )
        instance.groups.extend(created)
        self.providers.instances.update(instance)
        logger.info(
            "service_group_instances_added",
            organization_id=organization_id,
            app_instance_id=instance.app_instance_id,
            service_group_id=group.service_group_id,
            count=len(created),
        )
        return created

    def add_service_instance(self, request: AddServiceInstanceRequest) -> ServiceInstance:
        """Append a service instance to an existing service group instance.

        The service must exist in the matching group of the live
        descriptor, and the group instance must match on both the group id
        and the group instance id.
        """
        validate_add_service_instance(request)
        organization_id = request.organization_id
        instance = self._instance_of(organization_id, request.app_descriptor_id, request.app_instance_id)
        descriptor: AppDescriptor = self.providers.descriptors.get(request.app_descriptor_id)
        group = descriptor.find_group(request.service_group_id)
        service = group.find_service(request.service_id) if group is not None else None
        if service is None:
            raise NotFoundError("service not found in descriptor").with_context(
                organization_id=organization_id,
                entity_kind="service",
                entity_id=request.service_id,
                service_group_id=request.service_group_id,
            )
        group_instance = instance.find_group_instance(
            request.service_group_id, request.service_group_instance_id
        )
        if group_instance is None:
            raise NotFoundError("service group instance not found").with_context(
                organization_id=organization_id,
                entity_kind="service_group_instance",
                entity_id=request.service_group_instance_id,
                app_instance_id=request.app_instance_id,
            )

        service_instance = ServiceInstance(
            organization_id=organization_id,
            app_descriptor_id=instance.app_descriptor_id,
            app_instance_id=instance.app_instance_id,
            service_group_id=group_instance.service_group_id,
            service_group_instance_id=group_instance.service_group_instance_id,
            service_id=service.service_id,
            service_instance_id=self._new_id(),
            name=service.name,
            type=service.type,
            image=service.image,
            specs=copy.deepcopy(service.specs),
            storage=copy.deepcopy(service.storage),
            exposed_ports=copy.deepcopy(service.exposed_ports),
            environment_variables=dict(service.environment_variables),
            labels=dict(service.labels),
            deploy_after=list(service.deploy_after),
            run_arguments=list(service.run_arguments),
            status=ServiceStatus.SCHEDULED,
        )
        group_instance.service_instances.append(service_instance)
        self.providers.instances.update(instance)
        logger.info(
            "service_instance_added",
            organization_id=organization_id,
            app_instance_id=instance.app_instance_id,
            service_group_instance_id=group_instance.service_group_instance_id,
            service_instance_id=service_instance.service_instance_id,
        )
        return service_instance

    def update_service_status(self, request: UpdateServiceStatusRequest) -> ServiceInstance:
        """Record the runtime state of one service instance.

        An unknown (group instance, service instance) pair means the caller
        holds stale identifiers, which is reported as ``InternalError``.
        """
        validate_update_service_status(request)
        instance: AppInstance = self._lookup(request.organization_id, request.app_instance_id)
        service_instance = instance.find_service_instance(
            request.service_group_instance_id, request.service_instance_id
        )
        if service_instance is None:
            raise InternalError("service instance not found in application instance").with_context(
                organization_id=request.organization_id,
                entity_kind="service_instance",
                entity_id=request.service_instance_id,
                app_instance_id=request.app_instance_id,
                service_group_instance_id=request.service_group_instance_id,
            )
        service_instance.status = request.status
        service_instance.endpoints = copy.deepcopy(request.endpoints)
        service_instance.deployed_on_cluster_id = request.deployed_on_cluster_id
        service_instance.info = request.info
        self.providers.instances.update(instance)
        logger.debug(
            "service_status_updated",
            organization_id=request.organization_id,
            app_instance_id=request.app_instance_id,
            service_instance_id=request.service_instance_id,
            status=request.status.value,
        )
        return service_instance

    def update_instance_status(self, request: UpdateAppStatusRequest) -> AppInstance:
        validate_update_app_status(request)
        instance: AppInstance = self._lookup(request.organization_id, request.app_instance_id)
        instance.status = request.status
        instance.info = request.info
        self.providers.instances.update(instance)
        logger.info(
            "instance_status_updated",
            organization_id=request.organization_id,
            app_instance_id=request.app_instance_id,
            status=request.status.value,
        )
        return instance

    def remove_service_group_instances(self, organization_id: str, app_instance_id: str) -> AppInstance:
        """Drop every service group instance in one rewrite."""
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        instance: AppInstance = self._lookup(organization_id, app_instance_id)
        instance.groups = []
        self.providers.instances.update(instance)
        logger.info(
            "service_group_instances_removed",
            organization_id=organization_id,
            app_instance_id=app_instance_id,
        )
        return instance

    def remove_instance(self, organization_id: str, app_instance_id: str) -> None:
        """Delete the instance record, then its index entry.

        If the record can't be deleted the index is left alone. The
        snapshot and parameters are removed afterwards on a best-effort
        basis. An instance that is still the source or target of a network
        connection is not removed.
        """
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_child(organization_id, app_instance_id)
        if any(
            app_instance_id in (connection.source_instance_id, connection.target_instance_id)
            for connection in self.providers.connections.list_by_owner(organization_id)
        ):
            raise FailedPreconditionError("instance still has network connections").with_context(
                organization_id=organization_id,
                entity_kind="instance",
                entity_id=app_instance_id,
                operation="remove_instance",
            )
        self._unregister_store_first("remove_instance", organization_id, app_instance_id)
        for store_name in ("parametrized_descriptors", "instance_parameters"):
            store = getattr(self.providers, store_name)
            best_effort(
                "remove_instance",
                lambda store=store: _remove_if_present(store, app_instance_id),
                organization_id=organization_id,
                app_instance_id=app_instance_id,
                store=store_name,
            )
        logger.info("instance_removed", organization_id=organization_id, app_instance_id=app_instance_id)
