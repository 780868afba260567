"""Device groups and the devices registered in them."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DeviceGroup:
    organization_id: str = ""
    device_group_id: str = ""
    name: str = ""
    created: int = 0
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class Device:
    organization_id: str = ""
    device_group_id: str = ""
    device_id: str = ""
    register_since: int = 0
    labels: dict[str, str] = field(default_factory=dict)
