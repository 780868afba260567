"""Tests for provider set construction."""

from system_model.core.settings import StorageBackend, SystemModelSettings
from system_model.entities import Cluster, Organization
from system_model.providers import (
    MemoryEntityStore,
    MemoryOrganizationProvider,
    SQLEntityStore,
    SQLOrganizationProvider,
    create_providers,
)


def test_memory_backend():
    providers, engine = create_providers(SystemModelSettings(storage_backend=StorageBackend.MEMORY))
    assert engine is None
    assert isinstance(providers.organizations, MemoryOrganizationProvider)
    assert isinstance(providers.instances, MemoryEntityStore)


def test_sql_backend(tmp_path):
    settings = SystemModelSettings(
        storage_backend=StorageBackend.SQL, database_url=f"sqlite:///{tmp_path / 'registry.db'}"
    )
    providers, engine = create_providers(settings)
    try:
        assert isinstance(providers.organizations, SQLOrganizationProvider)
        assert isinstance(providers.clusters, SQLEntityStore)
        assert len(providers.closers) == 22
    finally:
        providers.close()
        engine.dispose()


def test_sql_data_survives_reopen(tmp_path):
    settings = SystemModelSettings(
        storage_backend=StorageBackend.SQL, database_url=f"sqlite:///{tmp_path / 'registry.db'}"
    )
    providers, engine = create_providers(settings)
    providers.organizations.add(Organization(organization_id="acme", name="Acme"))
    providers.clusters.add(Cluster(organization_id="acme", cluster_id="c1"))
    providers.close()
    engine.dispose()

    providers, engine = create_providers(settings)
    try:
        assert providers.organizations.get("acme").name == "Acme"
        assert providers.clusters.get("c1").organization_id == "acme"
    finally:
        providers.close()
        engine.dispose()


def test_clear_empties_everything(providers):
    providers.organizations.add(Organization(organization_id="acme", name="Acme"))
    providers.clusters.add(Cluster(organization_id="acme", cluster_id="c1"))
    providers.clear()
    assert providers.organizations.list() == []
    assert not providers.clusters.exists("c1")
