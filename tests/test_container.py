"""Tests for SystemModelContainer wiring."""

import pytest

from system_model import SystemModelContainer, get_container
from system_model.core.settings import StorageBackend, SystemModelSettings
from system_model.managers import (
    ApplicationManager,
    ClusterManager,
    EdgeControllerManager,
    HistoryLogManager,
    NetworkManager,
)
from system_model.providers import MemoryOrganizationProvider, SQLOrganizationProvider
from system_model.requests import AddClusterRequest, AddOrganizationRequest


def test_managers_are_cached(container):
    assert container.clusters is container.clusters
    assert isinstance(container.clusters, ClusterManager)
    assert isinstance(container.applications, ApplicationManager)
    assert isinstance(container.edge_controllers, EdgeControllerManager)
    assert isinstance(container.network, NetworkManager)
    assert isinstance(container.history_logs, HistoryLogManager)


def test_managers_share_providers(container):
    assert container.clusters.providers is container.organizations.providers


def test_memory_settings_build_memory_providers():
    with SystemModelContainer(SystemModelSettings(storage_backend=StorageBackend.MEMORY)) as c:
        assert isinstance(c.providers.organizations, MemoryOrganizationProvider)


def test_sql_settings_build_sql_providers(tmp_path):
    settings = SystemModelSettings(
        storage_backend=StorageBackend.SQL, database_url=f"sqlite:///{tmp_path / 'registry.db'}"
    )
    with SystemModelContainer(settings) as c:
        assert isinstance(c.providers.organizations, SQLOrganizationProvider)
        org = c.organizations.add_organization(AddOrganizationRequest(name="acme"))
        c.clusters.add_cluster(AddClusterRequest(organization_id=org.organization_id, name="c1"))

    with SystemModelContainer(settings) as c:
        [org] = c.organizations.list_organizations()
        assert [cluster.name for cluster in c.clusters.list_clusters(org.organization_id)] == ["c1"]


def test_injected_ids_and_clock(container, clock):
    org = container.organizations.add_organization(AddOrganizationRequest(name="acme"))
    assert org.organization_id == "id-1"
    assert org.created == clock.now


@pytest.fixture
def _no_global_container(monkeypatch):
    import system_model.container as module

    monkeypatch.setattr(module, "_global_container", None)


@pytest.mark.usefixtures("_no_global_container")
def test_get_container_is_singleton():
    assert get_container() is get_container()
