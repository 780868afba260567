"""Billing accounts and the projects they own."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class AccountState(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class ProjectState(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


@dataclass
class AccountBillingInfo:
    full_name: str = ""
    company_name: str = ""
    address: str = ""
    additional_info: str = ""


@dataclass
class Account:
    """Account names are unique across the system."""

    account_id: str = ""
    name: str = ""
    created: int = 0
    billing_info: AccountBillingInfo = field(default_factory=AccountBillingInfo)
    state: AccountState = AccountState.ACTIVE
    state_info: str = ""


@dataclass
class Project:
    owner_account_id: str = ""
    project_id: str = ""
    name: str = ""
    created: int = 0
    state: ProjectState = ProjectState.ACTIVE
    state_info: str = ""
