"""
system-model: metadata registry for a multi-tenant infrastructure platform.

Stores organizations and the entities they own (clusters, nodes, users,
roles, application descriptors and instances, devices, assets) plus
accounts and projects, and keeps the Organization Index consistent with
the entity stores.
"""

from system_model.container import SystemModelContainer, get_container

__version__ = "0.5.0"

__all__ = ["SystemModelContainer", "get_container", "__version__"]
