"""Folder model for the class/category taxonomy."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classvault.db.base import AuthoredMixin, Base
from classvault.db.models.enums import ResourceClass, enum_values

if TYPE_CHECKING:
    from classvault.db.models.resource import Resource


class Folder(AuthoredMixin, Base):
    """Local folder grouping catalog entries, nested via ``parent_id``.

    ``path`` stores the ancestor ids from the top level down, so a folder's
    breadcrumb can be rendered without walking parents.
    """

    __tablename__ = "folders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    class_name: Mapped[ResourceClass] = mapped_column(
        Enum(ResourceClass, values_callable=enum_values, length=16), nullable=False
    )
    parent_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True
    )
    path: Mapped[list[str]] = mapped_column(JSON, default=list)

    resources: Mapped[list[Resource]] = relationship("Resource", back_populates="folder")

    __table_args__ = (
        Index("ix_folders_class_parent", "class_name", "parent_id"),
    )
