"""Storage providers: entity stores and the Organization Index."""

from system_model.providers.base import ALL_BINDINGS, EntityBinding, EntityStore, composite_key
from system_model.providers.factory import (
    ProviderSet,
    create_memory_providers,
    create_providers,
    create_sql_providers,
)
from system_model.providers.membership import MembershipIndex, MemoryMembershipIndex, SQLMembershipIndex
from system_model.providers.memory import MemoryEntityStore
from system_model.providers.organization import (
    MemoryOrganizationProvider,
    OrganizationProvider,
    SQLOrganizationProvider,
)
from system_model.providers.sql import SQLEntityStore

__all__ = [
    "ALL_BINDINGS",
    "EntityBinding",
    "EntityStore",
    "MembershipIndex",
    "MemoryEntityStore",
    "MemoryMembershipIndex",
    "MemoryOrganizationProvider",
    "OrganizationProvider",
    "ProviderSet",
    "SQLEntityStore",
    "SQLMembershipIndex",
    "SQLOrganizationProvider",
    "composite_key",
    "create_memory_providers",
    "create_providers",
    "create_sql_providers",
]
