"""Declarative base, mixins and type-map for all system model ORM tables.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types.

Mixins
------
* **DocumentMixin** - ``id`` / ``owner_id`` / ``version`` / ``document``
  columns shared by every entity store table.
* **ChildIndexMixin** - ``organization_id`` / ``child_id`` composite key
  shared by every Organization Index table.
"""

from __future__ import annotations

from sqlalchemy import Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class SystemModelBase(DeclarativeBase):
    """Shared declarative base for every system model table.

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Integer``  (SQLite has no native BOOLEAN)
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Integer,
    }


class DocumentMixin:
    """One entity per row, serialised as a JSON document.

    ``owner_id`` is the organization (or account, for projects) that owns
    the entity and backs ``list_by_owner``. ``version`` is only advanced
    for versioned entity kinds.
    """

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    owner_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    document: Mapped[str] = mapped_column(Text, nullable=False)


class ChildIndexMixin:
    """Membership of one child identifier in one organization."""

    organization_id: Mapped[str] = mapped_column(Text, primary_key=True)
    child_id: Mapped[str] = mapped_column(Text, primary_key=True)
