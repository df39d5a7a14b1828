"""Resource model for catalog entries and Drive folder mounts."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classvault.db.base import AuthoredMixin, Base
from classvault.db.models.enums import EmbedType, ResourceClass, ResourceType, enum_values

if TYPE_CHECKING:
    from classvault.db.models.folder import Folder


class Resource(AuthoredMixin, Base):
    """A locally authored catalog entry.

    Two flavours share this table:
    - native resources (PDF, audio, video, links) shown as-is
    - mounts (type GDRIVE_FOLDER) that bind the entry to an external Drive
      folder; a mount is expanded into its documents at listing time and
      nothing from the external tree is copied into the database.
    """

    __tablename__ = "resources"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Catalog metadata
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    link: Mapped[str] = mapped_column(String(2048), nullable=False)
    class_name: Mapped[ResourceClass] = mapped_column(
        Enum(ResourceClass, values_callable=enum_values, length=16), nullable=False
    )
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    resource_type: Mapped[ResourceType] = mapped_column(
        Enum(ResourceType, values_callable=enum_values, length=32), nullable=False
    )
    embed_type: Mapped[EmbedType] = mapped_column(
        Enum(EmbedType, values_callable=enum_values, length=16),
        default=EmbedType.EXTERNAL,
    )

    # Taxonomy folder (optional for legacy entries)
    folder_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True
    )

    # Mount target (only for GDRIVE_FOLDER)
    drive_folder_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, doc="External root folder id for mounts"
    )

    # Soft-hide: hidden entries never appear in listings
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    folder: Mapped[Folder | None] = relationship("Folder", back_populates="resources")

    # Indexes
    __table_args__ = (
        Index("ix_resources_facets", "class_name", "category", "resource_type"),
        Index("ix_resources_created_at", "created_at"),
        Index("ix_resources_folder", "folder_id"),
    )

    @property
    def is_mount(self) -> bool:
        """True when this entry mirrors an external Drive folder."""
        return self.resource_type == ResourceType.GDRIVE_FOLDER and bool(self.drive_folder_id)
