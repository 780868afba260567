"""Organization manager."""

from __future__ import annotations

from system_model.core.errors import AlreadyExistsError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import Organization, OrganizationSetting
from system_model.managers.base import Manager
from system_model.providers import composite_key
from system_model.requests import (
    AddOrganizationRequest,
    AddSettingRequest,
    UpdateOrganizationRequest,
    UpdateSettingRequest,
)
from system_model.validation import (
    require,
    require_ids,
    validate_add_organization,
    validate_add_setting,
    validate_update_organization,
    validate_update_setting,
)

logger = get_logger(__name__)

_UPDATABLE = (
    "name",
    "email",
    "full_address",
    "city",
    "state",
    "country",
    "zip_code",
    "photo_base64",
)


class OrganizationManager(Manager):
    def add_organization(self, request: AddOrganizationRequest) -> Organization:
        """Create an organization. Names are unique."""
        validate_add_organization(request)
        organizations = self.providers.organizations
        if organizations.exists_by_name(request.name):
            raise AlreadyExistsError("organization name already in use").with_context(
                operation="add_organization", name=request.name
            )
        organization = Organization(
            organization_id=self._new_id(),
            name=request.name,
            email=request.email,
            full_address=request.full_address,
            city=request.city,
            state=request.state,
            country=request.country,
            zip_code=request.zip_code,
            photo_base64=request.photo_base64,
            created=self._now(),
        )
        organizations.add(organization)
        logger.info("organization_added", organization_id=organization.organization_id)
        return organization

    def get_organization(self, organization_id: str) -> Organization:
        require(organization_id, "organization_id")
        return self.providers.organizations.get(organization_id)

    def list_organizations(self) -> list[Organization]:
        return self.providers.organizations.list()

    def update_organization(self, request: UpdateOrganizationRequest) -> Organization:
        validate_update_organization(request)
        organizations = self.providers.organizations
        organization = organizations.get(request.organization_id)
        if (
            request.name is not None
            and request.name != organization.name
            and organizations.exists_by_name(request.name)
        ):
            raise AlreadyExistsError("organization name already in use").with_context(
                organization_id=request.organization_id, operation="update_organization", name=request.name
            )
        for name in _UPDATABLE:
            value = getattr(request, name)
            if value is not None:
                setattr(organization, name, value)
        organizations.update(organization)
        logger.info("organization_updated", organization_id=organization.organization_id)
        return organization

    # ------------------------------------------------------------------ #
    # Settings
    # ------------------------------------------------------------------ #

    def _require_setting(self, organization_id: str, key: str) -> str:
        store_key = composite_key(organization_id, key)
        if not self.providers.organization_settings.exists(store_key):
            raise NotFoundError("setting not found").with_context(
                organization_id=organization_id, entity_kind="organization_setting", entity_id=key
            )
        return store_key

    def add_setting(self, request: AddSettingRequest) -> OrganizationSetting:
        validate_add_setting(request)
        self._require_organization(request.organization_id)
        setting = OrganizationSetting(
            organization_id=request.organization_id,
            key=request.key,
            value=request.value,
            description=request.description,
        )
        self.providers.organization_settings.add(setting)
        logger.info("setting_added", organization_id=setting.organization_id, key=setting.key)
        return setting

    def get_setting(self, organization_id: str, key: str) -> OrganizationSetting:
        require_ids(organization_id=organization_id, key=key)
        self._require_organization(organization_id)
        return self.providers.organization_settings.get(self._require_setting(organization_id, key))

    def list_settings(self, organization_id: str) -> list[OrganizationSetting]:
        require(organization_id, "organization_id")
        self._require_organization(organization_id)
        return self.providers.organization_settings.list_by_owner(organization_id)

    def update_setting(self, request: UpdateSettingRequest) -> OrganizationSetting:
        validate_update_setting(request)
        setting = self.get_setting(request.organization_id, request.key)
        if request.value is not None:
            setting.value = request.value
        if request.description is not None:
            setting.description = request.description
        self.providers.organization_settings.update(setting)
        logger.info("setting_updated", organization_id=setting.organization_id, key=setting.key)
        return setting

    def remove_setting(self, organization_id: str, key: str) -> None:
        require_ids(organization_id=organization_id, key=key)
        self._require_organization(organization_id)
        self.providers.organization_settings.remove(self._require_setting(organization_id, key))
        logger.info("setting_removed", organization_id=organization_id, key=key)
