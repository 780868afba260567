"""User and role managers.

Users are keyed by e-mail address; the address is what the Organization
Index records for them.
"""

from __future__ import annotations

import copy

from system_model.core.logging import get_logger
from system_model.entities import ChildKind, Role, User
from system_model.managers.base import OrganizationChildManager
from system_model.requests import AddRoleRequest, AddUserRequest, UpdateContactInfoRequest, UpdateUserRequest
from system_model.validation import (
    require_ids,
    validate_add_role,
    validate_add_user,
    validate_update_contact_info,
    validate_update_user,
)

logger = get_logger(__name__)

_CONTACT_FIELDS = ("full_name", "address", "phone", "alt_email", "company_name", "title")


class UserManager(OrganizationChildManager):
    child_kind = ChildKind.USER
    store_name = "users"

    def add_user(self, request: AddUserRequest) -> User:
        validate_add_user(request)
        self._require_organization(request.organization_id)
        user = User(
            organization_id=request.organization_id,
            email=request.email,
            name=request.name,
            photo_url=request.photo_url,
            member_since=self._now(),
        )
        self._register("add_user", user.organization_id, user.email, user)
        logger.info("user_added", organization_id=user.organization_id)
        return user

    def get_user(self, organization_id: str, email: str) -> User:
        require_ids(organization_id=organization_id, email=email)
        return self._lookup(organization_id, email)

    def list_users(self, organization_id: str) -> list[User]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def update_user(self, request: UpdateUserRequest) -> User:
        validate_update_user(request)
        user: User = self._lookup(request.organization_id, request.email)
        if request.name is not None:
            user.name = request.name
        if request.photo_url is not None:
            user.photo_url = request.photo_url
        self.store.update(user)
        logger.info("user_updated", organization_id=user.organization_id)
        return user

    def update_contact_info(self, request: UpdateContactInfoRequest) -> User:
        validate_update_contact_info(request)
        user: User = self._lookup(request.organization_id, request.email)
        for name in _CONTACT_FIELDS:
            value = getattr(request, name)
            if value is not None:
                setattr(user.contact_info, name, copy.deepcopy(value))
        self.store.update(user)
        logger.info("user_contact_info_updated", organization_id=user.organization_id)
        return user

    def remove_user(self, organization_id: str, email: str) -> None:
        require_ids(organization_id=organization_id, email=email)
        self._unregister_store_first("remove_user", organization_id, email)
        logger.info("user_removed", organization_id=organization_id)


class RoleManager(OrganizationChildManager):
    child_kind = ChildKind.ROLE
    store_name = "roles"

    def add_role(self, request: AddRoleRequest) -> Role:
        validate_add_role(request)
        self._require_organization(request.organization_id)
        role = Role(
            organization_id=request.organization_id,
            role_id=self._new_id(),
            name=request.name,
            description=request.description,
            internal=request.internal,
            created=self._now(),
        )
        self._register("add_role", role.organization_id, role.role_id, role)
        logger.info("role_added", organization_id=role.organization_id, role_id=role.role_id)
        return role

    def get_role(self, organization_id: str, role_id: str) -> Role:
        require_ids(organization_id=organization_id, role_id=role_id)
        return self._lookup(organization_id, role_id)

    def list_roles(self, organization_id: str) -> list[Role]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def remove_role(self, organization_id: str, role_id: str) -> None:
        require_ids(organization_id=organization_id, role_id=role_id)
        self._unregister_store_first("remove_role", organization_id, role_id)
        logger.info("role_removed", organization_id=organization_id, role_id=role_id)
