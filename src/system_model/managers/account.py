"""Account, project and account-user manager.

Accounts sit beside organizations at the top level; their names are
unique. Projects belong to an account and their names are unique within
it. Account users tie a registered user, by e-mail, to an account with a
role.
"""

from __future__ import annotations

import copy

from system_model.core.errors import AlreadyExistsError, NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import Account, AccountState, AccountUser, Project, ProjectState, UserStatus
from system_model.managers.base import Manager
from system_model.providers import composite_key
from system_model.requests import (
    AddAccountRequest,
    AddAccountUserRequest,
    AddProjectRequest,
    UpdateAccountBillingInfoRequest,
    UpdateAccountRequest,
    UpdateAccountUserRequest,
    UpdateProjectRequest,
)
from system_model.validation import (
    require,
    require_ids,
    validate_add_account,
    validate_add_account_user,
    validate_add_project,
    validate_update_account,
    validate_update_account_user,
    validate_update_billing_info,
    validate_update_project,
)

logger = get_logger(__name__)

# Accounts share one owner bucket in the store.
_ALL_ACCOUNTS = ""


class AccountManager(Manager):
    def _name_taken(self, name: str) -> bool:
        return any(account.name == name for account in self.providers.accounts.list_by_owner(_ALL_ACCOUNTS))

    def _require_account(self, account_id: str) -> None:
        if not self.providers.accounts.exists(account_id):
            raise NotFoundError("account not found").with_context(entity_kind="account", entity_id=account_id)

    def _project_name_taken(self, account_id: str, name: str) -> bool:
        return any(project.name == name for project in self.providers.projects.list_by_owner(account_id))

    # ------------------------------------------------------------------ #
    # Accounts
    # ------------------------------------------------------------------ #

    def add_account(self, request: AddAccountRequest) -> Account:
        validate_add_account(request)
        if self._name_taken(request.name):
            raise AlreadyExistsError("account name already in use").with_context(
                entity_kind="account", name=request.name
            )
        account = Account(
            account_id=self._new_id(),
            name=request.name,
            created=self._now(),
            billing_info=copy.deepcopy(request.billing_info),
            state=AccountState.ACTIVE,
        )
        self.providers.accounts.add(account)
        logger.info("account_added", account_id=account.account_id)
        return account

    def get_account(self, account_id: str) -> Account:
        require(account_id, "account_id")
        return self.providers.accounts.get(account_id)

    def list_accounts(self) -> list[Account]:
        return self.providers.accounts.list_by_owner(_ALL_ACCOUNTS)

    def update_account(self, request: UpdateAccountRequest) -> Account:
        validate_update_account(request)
        account = self.providers.accounts.get(request.account_id)
        if request.name is not None and request.name != account.name:
            if self._name_taken(request.name):
                raise AlreadyExistsError("account name already in use").with_context(
                    entity_kind="account", entity_id=request.account_id, name=request.name
                )
            account.name = request.name
        if request.billing_info is not None:
            account.billing_info = copy.deepcopy(request.billing_info)
        if request.state is not None:
            account.state = request.state
        if request.state_info is not None:
            account.state_info = request.state_info
        self.providers.accounts.update(account)
        logger.info("account_updated", account_id=account.account_id)
        return account

    def update_account_billing_info(self, request: UpdateAccountBillingInfoRequest) -> Account:
        """Change single billing fields; ``None`` keeps the stored value."""
        validate_update_billing_info(request)
        account = self.providers.accounts.get(request.account_id)
        for name in ("full_name", "company_name", "address", "additional_info"):
            value = getattr(request, name)
            if value is not None:
                setattr(account.billing_info, name, value)
        self.providers.accounts.update(account)
        logger.info("account_billing_info_updated", account_id=account.account_id)
        return account

    # ------------------------------------------------------------------ #
    # Projects
    # ------------------------------------------------------------------ #

    def add_project(self, request: AddProjectRequest) -> Project:
        validate_add_project(request)
        self._require_account(request.owner_account_id)
        if self._project_name_taken(request.owner_account_id, request.name):
            raise AlreadyExistsError("project name already in use").with_context(
                entity_kind="project", account_id=request.owner_account_id, name=request.name
            )
        project = Project(
            owner_account_id=request.owner_account_id,
            project_id=self._new_id(),
            name=request.name,
            created=self._now(),
            state=ProjectState.ACTIVE,
        )
        self.providers.projects.add(project)
        logger.info("project_added", account_id=project.owner_account_id, project_id=project.project_id)
        return project

    def get_project(self, account_id: str, project_id: str) -> Project:
        require_ids(account_id=account_id, project_id=project_id)
        project = self.providers.projects.get(project_id)
        if project.owner_account_id != account_id:
            raise NotFoundError("project not found").with_context(
                entity_kind="project", entity_id=project_id, account_id=account_id
            )
        return project

    def list_projects(self, account_id: str) -> list[Project]:
        require(account_id, "account_id")
        self._require_account(account_id)
        return self.providers.projects.list_by_owner(account_id)

    def remove_project(self, account_id: str, project_id: str) -> None:
        self.get_project(account_id, project_id)
        self.providers.projects.remove(project_id)
        logger.info("project_removed", account_id=account_id, project_id=project_id)

    def update_project(self, request: UpdateProjectRequest) -> Project:
        validate_update_project(request)
        project = self.get_project(request.owner_account_id, request.project_id)
        if request.name is not None and request.name != project.name:
            if self._project_name_taken(request.owner_account_id, request.name):
                raise AlreadyExistsError("project name already in use").with_context(
                    entity_kind="project", entity_id=request.project_id, name=request.name
                )
            project.name = request.name
        if request.state is not None:
            project.state = request.state
        if request.state_info is not None:
            project.state_info = request.state_info
        self.providers.projects.update(project)
        logger.info("project_updated", account_id=project.owner_account_id, project_id=project.project_id)
        return project

    # ------------------------------------------------------------------ #
    # Account users
    # ------------------------------------------------------------------ #

    def add_account_user(self, request: AddAccountUserRequest) -> AccountUser:
        validate_add_account_user(request)
        self._require_account(request.account_id)
        if not self.providers.users.exists(request.email):
            raise NotFoundError("user not found").with_context(entity_kind="user", account_id=request.account_id)
        account_user = AccountUser(
            account_id=request.account_id,
            email=request.email,
            role_id=request.role_id,
            internal=request.internal,
            status=UserStatus.PENDING_ACTIVATION,
        )
        self.providers.account_users.add(account_user)
        logger.info("account_user_added", account_id=account_user.account_id, role_id=account_user.role_id)
        return account_user

    def get_account_user(self, account_id: str, email: str) -> AccountUser:
        require_ids(account_id=account_id, email=email)
        self._require_account(account_id)
        return self.providers.account_users.get(composite_key(account_id, email))

    def list_account_users(self, account_id: str) -> list[AccountUser]:
        require(account_id, "account_id")
        self._require_account(account_id)
        return self.providers.account_users.list_by_owner(account_id)

    def update_account_user(self, request: UpdateAccountUserRequest) -> AccountUser:
        validate_update_account_user(request)
        account_user = self.get_account_user(request.account_id, request.email)
        if request.status is not None:
            account_user.status = request.status
        if request.role_id is not None:
            account_user.role_id = request.role_id
        self.providers.account_users.update(account_user)
        logger.info("account_user_updated", account_id=account_user.account_id, status=account_user.status.value)
        return account_user

    def remove_account_user(self, account_id: str, email: str) -> None:
        self.get_account_user(account_id, email)
        self.providers.account_users.remove(composite_key(account_id, email))
        logger.info("account_user_removed", account_id=account_id)
