"""Organization entity, its settings and the child kinds tracked by the Organization Index."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChildKind(str, Enum):
    """
    Kinds of child identifiers an organization owns by reference.

    Every kind has its own index table with identical semantics.
    """

    CLUSTER = "cluster"
    NODE = "node"
    DESCRIPTOR = "descriptor"
    INSTANCE = "instance"
    USER = "user"
    ROLE = "role"
    EDGE_CONTROLLER = "edge_controller"


@dataclass
class Organization:
    """Top-level tenant; owns every other entity."""

    organization_id: str = ""
    name: str = ""
    email: str = ""
    full_address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""
    photo_base64: str = ""
    created: int = 0


@dataclass
class OrganizationSetting:
    """Free-form key/value setting; keys are unique per organization."""

    organization_id: str = ""
    key: str = ""
    value: str = ""
    description: str = ""
