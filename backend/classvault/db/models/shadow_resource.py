"""ShadowResource model for local overrides of mirrored Drive files."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from classvault.db.base import AuthoredMixin, Base
from classvault.db.models.enums import ResourceClass, ResourceType, enum_values


class ShadowResource(AuthoredMixin, Base):
    """Override or hide directive layered over one external Drive file.

    Records are append-only: every edit or delete of an ``ext-`` item inserts a
    new row and nothing is updated in place. An override carries the full set
    of replacement fields; a hide row only sets ``is_hidden``.
    """

    __tablename__ = "shadow_resources"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Id of the Drive file being shadowed
    external_item_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # Mount the item was listed under when the record was created
    mount_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("resources.id", ondelete="SET NULL"), nullable=True
    )

    # Replacement fields (all set for overrides, all null for hides)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    link: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    class_name: Mapped[ResourceClass | None] = mapped_column(
        Enum(ResourceClass, values_callable=enum_values, length=16), nullable=True
    )
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resource_type: Mapped[ResourceType | None] = mapped_column(
        Enum(ResourceType, values_callable=enum_values, length=32), nullable=True
    )

    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_shadow_resources_external_item", "external_item_id"),
    )
