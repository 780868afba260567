"""Tests for node, user and role managers."""

import pytest

from system_model.core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError, StorageError
from system_model.entities import ChildKind, NodeState, NodeStatus
from system_model.requests import (
    AddNodeRequest,
    AddOrganizationRequest,
    AddRoleRequest,
    AddUserRequest,
    UpdateContactInfoRequest,
    UpdateUserRequest,
)


class TestNodes:
    def test_add_get_list(self, container, org):
        node = container.nodes.add_node(
            AddNodeRequest(organization_id=org.organization_id, ip="10.0.0.5")
        )
        assert node.status == NodeStatus.UNKNOWN
        assert node.state == NodeState.UNREGISTERED
        assert container.nodes.get_node(org.organization_id, node.node_id) == node
        assert container.nodes.list_nodes(org.organization_id) == [node]

    def test_ip_required(self, container, org):
        with pytest.raises(InvalidArgumentError):
            container.nodes.add_node(AddNodeRequest(organization_id=org.organization_id))

    def test_remove(self, container, org):
        node = container.nodes.add_node(AddNodeRequest(organization_id=org.organization_id, ip="10.0.0.5"))
        container.nodes.remove_node(org.organization_id, node.node_id)
        with pytest.raises(NotFoundError):
            container.nodes.get_node(org.organization_id, node.node_id)

    def test_index_failure_on_remove_restores_node(self, container, org, inject_failure):
        node = container.nodes.add_node(AddNodeRequest(organization_id=org.organization_id, ip="10.0.0.5"))
        inject_failure("organizations", "delete_child")
        with pytest.raises(StorageError):
            container.nodes.remove_node(org.organization_id, node.node_id)
        assert container.nodes.get_node(org.organization_id, node.node_id) == node

    def test_index_failure_on_add_rolls_back(self, container, providers, org, inject_failure):
        inject_failure("organizations", "add_child")
        with pytest.raises(StorageError):
            container.nodes.add_node(AddNodeRequest(organization_id=org.organization_id, ip="10.0.0.5"))
        assert providers.nodes.list_by_owner(org.organization_id) == []


class TestUsers:
    def test_keyed_by_email(self, container, providers, org, clock):
        user = container.users.add_user(
            AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana")
        )
        assert user.member_since == clock.now
        assert providers.organizations.child_exists(ChildKind.USER, org.organization_id, "ana@acme.io")
        assert container.users.get_user(org.organization_id, "ana@acme.io").name == "Ana"

    def test_duplicate_email(self, container, providers, org):
        request = AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana")
        container.users.add_user(request)
        with pytest.raises(AlreadyExistsError):
            container.users.add_user(request)
        assert len(container.users.list_users(org.organization_id)) == 1

    def test_bad_email(self, container, org):
        with pytest.raises(InvalidArgumentError) as exc_info:
            container.users.add_user(AddUserRequest(organization_id=org.organization_id, email="ana", name="Ana"))
        assert exc_info.value.field == "email"

    def test_user_not_visible_from_other_org(self, container, org):
        container.users.add_user(AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana"))
        other = container.organizations.add_organization(AddOrganizationRequest(name="globex"))
        with pytest.raises(NotFoundError):
            container.users.get_user(other.organization_id, "ana@acme.io")

    def test_remove(self, container, org):
        container.users.add_user(AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana"))
        container.users.remove_user(org.organization_id, "ana@acme.io")
        assert container.users.list_users(org.organization_id) == []

    def test_update_keeps_unset_fields(self, container, org):
        container.users.add_user(
            AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana", photo_url="a.png")
        )
        updated = container.users.update_user(
            UpdateUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana Silva")
        )
        assert (updated.name, updated.photo_url) == ("Ana Silva", "a.png")
        assert container.users.get_user(org.organization_id, "ana@acme.io") == updated

    def test_update_empty_name(self, container, org):
        container.users.add_user(AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana"))
        with pytest.raises(InvalidArgumentError):
            container.users.update_user(
                UpdateUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="")
            )

    def test_update_unknown_user(self, container, org):
        with pytest.raises(NotFoundError):
            container.users.update_user(UpdateUserRequest(organization_id=org.organization_id, email="x@acme.io"))

    def test_update_contact_info(self, container, org):
        container.users.add_user(AddUserRequest(organization_id=org.organization_id, email="ana@acme.io", name="Ana"))
        container.users.update_contact_info(
            UpdateContactInfoRequest(
                organization_id=org.organization_id, email="ana@acme.io", phone={"work": "555"}, title="CTO"
            )
        )
        updated = container.users.update_contact_info(
            UpdateContactInfoRequest(organization_id=org.organization_id, email="ana@acme.io", company_name="Acme")
        )
        info = container.users.get_user(org.organization_id, "ana@acme.io").contact_info
        assert info == updated.contact_info
        assert (info.phone, info.title, info.company_name) == ({"work": "555"}, "CTO", "Acme")


class TestRoles:
    def test_add_list_remove(self, container, org):
        admin = container.roles.add_role(
            AddRoleRequest(organization_id=org.organization_id, name="admin", internal=True)
        )
        viewer = container.roles.add_role(AddRoleRequest(organization_id=org.organization_id, name="viewer"))
        assert {r.name for r in container.roles.list_roles(org.organization_id)} == {"admin", "viewer"}
        assert container.roles.get_role(org.organization_id, admin.role_id).internal

        container.roles.remove_role(org.organization_id, viewer.role_id)
        assert [r.role_id for r in container.roles.list_roles(org.organization_id)] == [admin.role_id]

    def test_remove_missing(self, container, org):
        with pytest.raises(NotFoundError):
            container.roles.remove_role(org.organization_id, "ghost")
