"""Service instance lifetime records kept for application history queries."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ServiceInstanceLog:
    """One service instance's lifetime. ``terminated`` is 0 while it runs."""

    organization_id: str = ""
    app_descriptor_id: str = ""
    app_instance_id: str = ""
    service_group_id: str = ""
    service_group_instance_id: str = ""
    service_id: str = ""
    service_instance_id: str = ""
    created: int = 0
    terminated: int = 0

    def overlaps(self, available_from: int, available_to: int) -> bool:
        """Whether the instance was alive at some point of the window.

        A bound of 0 leaves that side of the window open.
        """
        if available_to and self.created > available_to:
            return False
        if available_from and self.terminated and self.terminated < available_from:
            return False
        return True


@dataclass
class LogResponse:
    organization_id: str = ""
    available_from: int = 0
    available_to: int = 0
    events: list[ServiceInstanceLog] = field(default_factory=list)
