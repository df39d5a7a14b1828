"""Enum types for database models."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    """Role asserted by the identity provider."""

    ADMIN = "admin"
    STUDENT = "student"


class ResourceClass(str, enum.Enum):
    """Class (grade) a resource or folder is visible to."""

    CLASS_1 = "1"
    CLASS_2 = "2"
    CLASS_3 = "3"
    CLASS_4 = "4"
    CLASS_5 = "5"
    CLASS_6 = "6"
    CLASS_7 = "7"
    CLASS_8 = "8"
    CLASS_9 = "9"
    CLASS_10 = "10"
    GENERAL = "GENERAL"


class ResourceType(str, enum.Enum):
    """Kind of catalog entry."""

    PDF = "PDF"
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    E_BOOK = "E-Book"
    AUDIOBOOK = "Audiobook"
    E_LIBRARY = "E-Library"
    GDRIVE_FOLDER = "GDRIVE_FOLDER"  # mount of an external Drive folder
    OTHER = "Other Resources"
    EXTERNAL_FILE = "EXTERNAL_FILE"  # synthesized from a mount, never stored natively


class EmbedType(str, enum.Enum):
    """Preview widget used by the presentation layer."""

    YOUTUBE = "youtube"
    AUDIO = "audio"
    IFRAME = "iframe"
    EXTERNAL = "external"


class MediaKind(str, enum.Enum):
    """Closed classification of a file or link's content."""

    DOCUMENT = "DOCUMENT"
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    OTHER = "OTHER"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum values (e.g. "E-Book") rather than member names."""
    return [member.value for member in enum_cls]
