"""Database models for ClassVault."""

from classvault.db.models.enums import (
    EmbedType,
    MediaKind,
    ResourceClass,
    ResourceType,
    UserRole,
)
from classvault.db.models.folder import Folder
from classvault.db.models.resource import Resource
from classvault.db.models.shadow_resource import ShadowResource

__all__ = [
    # Models
    "Folder",
    "Resource",
    "ShadowResource",
    # Enums
    "EmbedType",
    "MediaKind",
    "ResourceClass",
    "ResourceType",
    "UserRole",
]
