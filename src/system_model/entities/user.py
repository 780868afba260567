"""Users (keyed by e-mail), roles, and account memberships."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class UserStatus(str, Enum):
    """Status of a user inside an account."""

    PENDING_ACTIVATION = "pending_activation"
    ACTIVE = "active"
    INVITED = "invited"
    INVITE_EXPIRED = "invite_expired"
    DECLINE_INVITE = "decline_invite"
    DEACTIVATED = "deactivated"


@dataclass
class UserContactInfo:
    full_name: str = ""
    address: str = ""
    phone: dict[str, str] = field(default_factory=dict)
    alt_email: str = ""
    company_name: str = ""
    title: str = ""


@dataclass
class User:
    organization_id: str = ""
    email: str = ""
    name: str = ""
    photo_url: str = ""
    member_since: int = 0
    contact_info: UserContactInfo = field(default_factory=UserContactInfo)


@dataclass
class Role:
    organization_id: str = ""
    role_id: str = ""
    name: str = ""
    description: str = ""
    internal: bool = False
    created: int = 0


@dataclass
class AccountUser:
    """Membership of a user (by e-mail) in an account."""

    account_id: str = ""
    email: str = ""
    role_id: str = ""
    internal: bool = False
    status: UserStatus = UserStatus.PENDING_ACTIVATION
