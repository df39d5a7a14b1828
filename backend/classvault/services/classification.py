"""Media classification for Drive files and resource links.

Pure functions, no I/O: the Flattener uses ``classify_mime_type`` to pick the
files a mount exposes, and mount/resource handling uses ``classify_link`` and
``embed_type_for_link`` to decide how a link is previewed.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from classvault.db.models.enums import EmbedType, MediaKind

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

DOCUMENT_MIME_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/rtf",
    "application/epub+zip",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.spreadsheet",
    "application/vnd.oasis.opendocument.presentation",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.google-apps.document",
    "application/vnd.google-apps.spreadsheet",
    "application/vnd.google-apps.presentation",
})

DOCUMENT_EXTENSIONS = frozenset({
    ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx",
    ".odt", ".ods", ".odp", ".rtf", ".txt", ".epub",
})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg", ".m4a", ".aac", ".flac", ".opus"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mov", ".mkv", ".avi", ".m4v"})

VIDEO_HOSTS = re.compile(r"(^|\.)(youtube\.com|youtu\.be|vimeo\.com)$", re.IGNORECASE)
AUDIO_HOSTS = re.compile(r"(^|\.)(soundcloud\.com|anchor\.fm)$", re.IGNORECASE)
DRIVE_HOSTS = re.compile(r"(^|\.)(drive|docs)\.google\.com$", re.IGNORECASE)
YOUTUBE_HOSTS = re.compile(r"(^|\.)(youtube\.com|youtu\.be)$", re.IGNORECASE)


def classify_mime_type(mime_type: str | None) -> MediaKind:
    """Classify a Drive mime type.

    Folders and shortcuts classify as OTHER; callers that care about folders
    check ``is_folder_mime_type`` first.
    """
    if not mime_type:
        return MediaKind.OTHER

    mime = mime_type.split(";", 1)[0].strip().lower()
    if mime in DOCUMENT_MIME_TYPES or mime.startswith("text/"):
        return MediaKind.DOCUMENT
    if mime.startswith("audio/"):
        return MediaKind.AUDIO
    if mime.startswith("video/"):
        return MediaKind.VIDEO
    return MediaKind.OTHER


def is_folder_mime_type(mime_type: str | None) -> bool:
    return mime_type == FOLDER_MIME_TYPE


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


def classify_link(url: str | None) -> MediaKind:
    """Classify a resource link by host and file extension."""
    if not url:
        return MediaKind.OTHER

    parsed = urlparse(url if "://" in url else f"https://{url}")
    host = (parsed.hostname or "").lower()
    ext = _extension(parsed.path)

    if VIDEO_HOSTS.search(host) or ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if AUDIO_HOSTS.search(host) or ext in AUDIO_EXTENSIONS:
        return MediaKind.AUDIO
    if ext in DOCUMENT_EXTENSIONS:
        return MediaKind.DOCUMENT
    if DRIVE_HOSTS.search(host) and ("/document/" in parsed.path or "/file/" in parsed.path):
        return MediaKind.DOCUMENT
    return MediaKind.OTHER


def embed_type_for_link(url: str | None) -> EmbedType:
    """Pick the preview widget for a link."""
    if not url:
        return EmbedType.EXTERNAL

    parsed = urlparse(url if "://" in url else f"https://{url}")
    host = (parsed.hostname or "").lower()
    if YOUTUBE_HOSTS.search(host):
        return EmbedType.YOUTUBE

    kind = classify_link(url)
    if kind == MediaKind.AUDIO:
        return EmbedType.AUDIO
    if kind == MediaKind.DOCUMENT or DRIVE_HOSTS.search(host):
        return EmbedType.IFRAME
    return EmbedType.EXTERNAL
