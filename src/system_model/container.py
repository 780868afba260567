"""
Lazy-initialised dependency container.

:class:`SystemModelContainer` wires settings to a provider set and every
manager. Components are created on first access; all managers share the
same providers, identifier generator and clock.

Usage::

    from system_model.container import SystemModelContainer

    with SystemModelContainer() as c:
        org = c.organizations.add_organization(AddOrganizationRequest(name="acme"))
        c.clusters.list_clusters(org.organization_id)
"""

from __future__ import annotations

from typing import Any

from system_model.core.logging import configure_logging, get_logger
from system_model.core.settings import SystemModelSettings, get_settings
from system_model.core.timestamps import Clock, IdGenerator, epoch_seconds, generate_id
from system_model.managers import (
    AccountManager,
    ApplicationManager,
    AssetManager,
    ClusterManager,
    DeviceManager,
    EdgeControllerManager,
    HistoryLogManager,
    NetworkManager,
    NodeManager,
    OrganizationManager,
    RoleManager,
    UserManager,
)
from system_model.providers import ProviderSet, create_providers

logger = get_logger(__name__)


class SystemModelContainer:
    """Lazy-initialised dependency container.

    Providers and managers are created on first property access and
    released via :meth:`close` (or the context-manager protocol).
    """

    def __init__(
        self,
        settings: SystemModelSettings | None = None,
        *,
        providers: ProviderSet | None = None,
        id_generator: IdGenerator = generate_id,
        clock: Clock = epoch_seconds,
        configure_logs: bool = False,
    ) -> None:
        self._settings = settings
        self._providers = providers
        self._engine: Any | None = None
        self._managers: dict[type, Any] = {}
        self._id_generator = id_generator
        self._clock = clock
        if configure_logs:
            configure_logging(
                level=self.settings.log_level,
                json_format=self.settings.log_format == "json",
                service=self.settings.service_name,
            )

    # ── Properties (lazy) ────────────────────────────────────────

    @property
    def settings(self) -> SystemModelSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def providers(self) -> ProviderSet:
        if self._providers is None:
            self._providers, self._engine = create_providers(self.settings)
        return self._providers

    def _manager(self, cls: type) -> Any:
        if cls not in self._managers:
            self._managers[cls] = cls(self.providers, id_generator=self._id_generator, clock=self._clock)
        return self._managers[cls]

    @property
    def organizations(self) -> OrganizationManager:
        return self._manager(OrganizationManager)

    @property
    def clusters(self) -> ClusterManager:
        return self._manager(ClusterManager)

    @property
    def nodes(self) -> NodeManager:
        return self._manager(NodeManager)

    @property
    def users(self) -> UserManager:
        return self._manager(UserManager)

    @property
    def roles(self) -> RoleManager:
        return self._manager(RoleManager)

    @property
    def applications(self) -> ApplicationManager:
        return self._manager(ApplicationManager)

    @property
    def devices(self) -> DeviceManager:
        return self._manager(DeviceManager)

    @property
    def assets(self) -> AssetManager:
        return self._manager(AssetManager)

    @property
    def accounts(self) -> AccountManager:
        return self._manager(AccountManager)

    @property
    def edge_controllers(self) -> EdgeControllerManager:
        return self._manager(EdgeControllerManager)

    @property
    def network(self) -> NetworkManager:
        return self._manager(NetworkManager)

    @property
    def history_logs(self) -> HistoryLogManager:
        return self._manager(HistoryLogManager)

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Release sessions and dispose of the engine."""
        if self._providers is not None:
            self._providers.close()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        logger.debug("container_closed")

    def __enter__(self) -> SystemModelContainer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


# ── Global convenience ───────────────────────────────────────────────────

_global_container: SystemModelContainer | None = None


def get_container() -> SystemModelContainer:
    """Get (or create) a module-level :class:`SystemModelContainer`."""
    global _global_container
    if _global_container is None:
        _global_container = SystemModelContainer()
    return _global_container
