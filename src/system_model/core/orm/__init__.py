"""SQLAlchemy ORM layer for the system model.

Tags:
    system-model, orm, sqlalchemy
"""

from system_model.core.orm.base import ChildIndexMixin, DocumentMixin, SystemModelBase
from system_model.core.orm.session import (
    SAConnectionBridge,
    SystemModelSession,
    create_system_model_engine,
    session_factory,
)
from system_model.core.orm.tables import ALL_TABLES

__all__ = [
    "ALL_TABLES",
    "ChildIndexMixin",
    "DocumentMixin",
    "SAConnectionBridge",
    "SystemModelBase",
    "SystemModelSession",
    "create_system_model_engine",
    "session_factory",
]
