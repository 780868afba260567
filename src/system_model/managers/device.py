"""Device group and device manager.

Devices are keyed by organization, group and device id together: devices
choose their own ids, so two tenants (or two groups of one tenant) may
register the same id.

Device group names are unique within an organization; application security
rules refer to device groups by name. A device group can't be
removed while devices are still registered in it.
"""

from __future__ import annotations

from system_model.core.errors import AlreadyExistsError, FailedPreconditionError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import Device, DeviceGroup
from system_model.managers.base import Manager
from system_model.providers import composite_key
from system_model.requests import AddDeviceGroupRequest, AddDeviceRequest, UpdateDeviceRequest
from system_model.validation import (
    require,
    require_ids,
    validate_add_device,
    validate_add_device_group,
    validate_update_device,
)

logger = get_logger(__name__)


class DeviceManager(Manager):
    # ------------------------------------------------------------------ #
    # Device groups
    # ------------------------------------------------------------------ #

    def add_device_group(self, request: AddDeviceGroupRequest) -> DeviceGroup:
        validate_add_device_group(request)
        self._require_organization(request.organization_id)
        groups = self.providers.device_groups
        if any(group.name == request.name for group in groups.list_by_owner(request.organization_id)):
            raise AlreadyExistsError("device group name already in use").with_context(
                organization_id=request.organization_id, entity_kind="device_group", name=request.name
            )
        group = DeviceGroup(
            organization_id=request.organization_id,
            device_group_id=self._new_id(),
            name=request.name,
            created=self._now(),
            labels=dict(request.labels),
        )
        groups.add(group)
        logger.info(
            "device_group_added",
            organization_id=group.organization_id,
            device_group_id=group.device_group_id,
        )
        return group

    def get_device_group(self, organization_id: str, device_group_id: str) -> DeviceGroup:
        require_ids(organization_id=organization_id, device_group_id=device_group_id)
        self._require_organization(organization_id)
        group = self.providers.device_groups.get(device_group_id)
        if group.organization_id != organization_id:
            raise NotFoundError("device group not found").with_context(
                organization_id=organization_id, entity_kind="device_group", entity_id=device_group_id
            )
        return group

    def get_device_group_by_name(self, organization_id: str, name: str) -> DeviceGroup:
        require_ids(organization_id=organization_id, name=name)
        for group in self.list_device_groups(organization_id):
            if group.name == name:
                return group
        raise NotFoundError("device group not found").with_context(
            organization_id=organization_id, entity_kind="device_group", name=name
        )

    def list_device_groups(self, organization_id: str) -> list[DeviceGroup]:
        require(organization_id, "organization_id")
        self._require_organization(organization_id)
        return self.providers.device_groups.list_by_owner(organization_id)

    def remove_device_group(self, organization_id: str, device_group_id: str) -> None:
        group = self.get_device_group(organization_id, device_group_id)
        if self._devices_in(organization_id, group.device_group_id):
            raise FailedPreconditionError("device group still has devices").with_context(
                organization_id=organization_id,
                entity_kind="device_group",
                entity_id=device_group_id,
                operation="remove_device_group",
            )
        self.providers.device_groups.remove(device_group_id)
        logger.info("device_group_removed", organization_id=organization_id, device_group_id=device_group_id)

    # ------------------------------------------------------------------ #
    # Devices
    # ------------------------------------------------------------------ #

    def _devices_in(self, organization_id: str, device_group_id: str) -> list[Device]:
        return [
            device
            for device in self.providers.devices.list_by_owner(organization_id)
            if device.device_group_id == device_group_id
        ]

    def add_device(self, request: AddDeviceRequest) -> Device:
        validate_add_device(request)
        self.get_device_group(request.organization_id, request.device_group_id)
        device = Device(
            organization_id=request.organization_id,
            device_group_id=request.device_group_id,
            device_id=request.device_id,
            register_since=self._now(),
            labels=dict(request.labels),
        )
        self.providers.devices.add(device)
        logger.info(
            "device_added",
            organization_id=device.organization_id,
            device_group_id=device.device_group_id,
            device_id=device.device_id,
        )
        return device

    def get_device(self, organization_id: str, device_group_id: str, device_id: str) -> Device:
        require_ids(organization_id=organization_id, device_group_id=device_group_id, device_id=device_id)
        self._require_organization(organization_id)
        key = composite_key(organization_id, device_group_id, device_id)
        if not self.providers.devices.exists(key):
            raise NotFoundError("device not found").with_context(
                organization_id=organization_id,
                entity_kind="device",
                entity_id=device_id,
                device_group_id=device_group_id,
            )
        return self.providers.devices.get(key)

    def list_devices(self, organization_id: str, device_group_id: str) -> list[Device]:
        self.get_device_group(organization_id, device_group_id)
        return self._devices_in(organization_id, device_group_id)

    def update_device(self, request: UpdateDeviceRequest) -> Device:
        validate_update_device(request)
        device = self.get_device(request.organization_id, request.device_group_id, request.device_id)
        device.labels.update(request.add_labels)
        for key in request.remove_labels:
            device.labels.pop(key, None)
        self.providers.devices.update(device)
        return device

    def remove_device(self, organization_id: str, device_group_id: str, device_id: str) -> None:
        self.get_device(organization_id, device_group_id, device_id)
        self.providers.devices.remove(composite_key(organization_id, device_group_id, device_id))
        logger.info(
            "device_removed",
            organization_id=organization_id,
            device_group_id=device_group_id,
            device_id=device_id,
        )
