"""
Shared pytest fixtures for system-model tests.

This module provides:
- Provider sets parametrised over both storage backends (memory, sql)
- Deterministic identifier generator and clock
- A container wired to those providers
- Failure-injection doubles wrapping real providers

Usage:
    Any test that takes ``providers`` or ``container`` runs once per
    backend. Tests that only make sense in memory use ``memory_providers``.
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Ensure system_model package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from system_model.container import SystemModelContainer
from system_model.core.errors import StorageError
from system_model.core.orm.session import create_system_model_engine
from system_model.core.timestamps import FixedClock, SequentialIds
from system_model.entities import AppDescriptor, Organization, Port, SecurityRule, Service, ServiceGroup
from system_model.providers import ProviderSet, create_memory_providers, create_sql_providers
from system_model.requests import AddAppDescriptorRequest, AddOrganizationRequest

# =============================================================================
# Deterministic ids and time
# =============================================================================


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds("id")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(1_700_000_000)


# =============================================================================
# Providers
# =============================================================================


@pytest.fixture
def memory_providers() -> ProviderSet:
    return create_memory_providers()


@pytest.fixture
def sql_providers(tmp_path: Path) -> Generator[ProviderSet, None, None]:
    engine = create_system_model_engine(f"sqlite:///{tmp_path / 'system_model.db'}")
    providers = create_sql_providers(engine)
    yield providers
    providers.close()
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def providers(request: pytest.FixtureRequest) -> ProviderSet:
    """Provider set for each storage backend."""
    return request.getfixturevalue(f"{request.param}_providers")


@pytest.fixture
def container(providers: ProviderSet, ids: SequentialIds, clock: FixedClock) -> SystemModelContainer:
    return SystemModelContainer(providers=providers, id_generator=ids, clock=clock)


@pytest.fixture
def org(container: SystemModelContainer) -> Organization:
    """Organization ``acme``."""
    return container.organizations.add_organization(AddOrganizationRequest(name="acme"))


@pytest.fixture
def descriptor_request(org: Organization) -> AddAppDescriptorRequest:
    """Two-group descriptor: ``frontend`` (nginx, php) and ``backend`` (mysql)."""
    return AddAppDescriptorRequest(
        organization_id=org.organization_id,
        name="wordpress",
        configuration_options={"replicas": "1"},
        labels={"app": "wordpress"},
        groups=[
            ServiceGroup(
                name="frontend",
                services=[
                    Service(
                        name="nginx",
                        image="nginx:1.25",
                        exposed_ports=[Port(name="http", internal_port=80, exposed_port=80)],
                    ),
                    Service(name="php", image="php:8.3-fpm", deploy_after=["nginx"]),
                ],
            ),
            ServiceGroup(name="backend", services=[Service(name="mysql", image="mysql:8")]),
        ],
        rules=[SecurityRule(name="web", target_service_group_name="frontend", target_port=80)],
    )


@pytest.fixture
def descriptor(container: SystemModelContainer, descriptor_request: AddAppDescriptorRequest) -> AppDescriptor:
    return container.applications.add_descriptor(descriptor_request)


# =============================================================================
# Failure injection
# =============================================================================


class FailOn:
    """Wraps a provider; the named methods raise ``StorageError`` instead of running.

    Every other attribute is delegated to the wrapped provider.
    """

    def __init__(self, target: Any, *methods: str) -> None:
        self._target = target
        self._methods = set(methods)
        self.calls: list[tuple[str, tuple]] = []

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._target, name)
        if name not in self._methods:
            return attr

        def fail(*args: Any, **kwargs: Any) -> Any:
            self.calls.append((name, args))
            raise StorageError(f"injected failure in {name}")

        return fail


class BeforeUpdate:
    """Wraps a store and runs ``hook`` once right before the first ``update``.

    Used to interleave a concurrent writer between a manager's read and
    its rewrite.
    """

    def __init__(self, target: Any, hook: Callable[[], None]) -> None:
        self._target = target
        self._hook: Callable[[], None] | None = hook

    def update(self, entity: Any) -> None:
        if self._hook is not None:
            hook, self._hook = self._hook, None
            hook()
        self._target.update(entity)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._target, name)


@pytest.fixture
def inject_failure(providers: ProviderSet) -> Callable[..., FailOn]:
    """Replace ``providers.<attr>`` with a :class:`FailOn` wrapper.

    Example:
        inject_failure("organizations", "add_child")
    """
    originals: dict[str, Any] = {}

    def _inject(attr: str, *methods: str) -> FailOn:
        originals.setdefault(attr, getattr(providers, attr))
        wrapped = FailOn(originals[attr], *methods)
        setattr(providers, attr, wrapped)
        return wrapped

    yield _inject
    for attr, original in originals.items():
        setattr(providers, attr, original)


@pytest.fixture
def before_update(providers: ProviderSet) -> Callable[..., BeforeUpdate]:
    originals: dict[str, Any] = {}

    def _wrap(attr: str, hook: Callable[[], None]) -> BeforeUpdate:
        originals.setdefault(attr, getattr(providers, attr))
        wrapped = BeforeUpdate(originals[attr], hook)
        setattr(providers, attr, wrapped)
        return wrapped

    yield _wrap
    for attr, original in originals.items():
        setattr(providers, attr, original)
