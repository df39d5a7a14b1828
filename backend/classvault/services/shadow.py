"""Reconcile mirrored Drive files with local shadow records.

A shadow record never touches Drive. It is keyed by the Drive file id and
either hides the file or replaces its catalog fields. Records are append-only,
so one file can have several; the rule applied here is:

1. any hide record for the file drops it from the listing;
2. otherwise the override with the latest ``created_at`` wins (ties go to
   the record that appears later in the input, i.e. was inserted later);
3. otherwise the file passes through with its Drive metadata and the mount's
   class and category.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from classvault.db.models.enums import EmbedType, ResourceClass, ResourceType
from classvault.schemas.resource import VisibleResource
from classvault.services.drive_tree import FlatItem

EXTERNAL_ID_PREFIX = "ext-"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class MountLike(Protocol):
    """Fields of a mount record the reconciler reads."""

    id: str
    class_name: ResourceClass
    category: str
    created_by: str
    created_at: datetime


class ShadowLike(Protocol):
    """Fields of a shadow record the reconciler reads."""

    external_item_id: str
    title: str | None
    link: str | None
    class_name: ResourceClass | None
    category: str | None
    resource_type: ResourceType | None
    is_hidden: bool
    created_at: datetime | None


def external_resource_id(external_item_id: str) -> str:
    """Build the synthetic listing id for a Drive file."""
    return f"{EXTERNAL_ID_PREFIX}{external_item_id}"


def parse_external_resource_id(resource_id: str) -> str | None:
    """Return the Drive file id behind a synthetic id, or None for native ids."""
    if resource_id.startswith(EXTERNAL_ID_PREFIX):
        external_id = resource_id[len(EXTERNAL_ID_PREFIX):]
        return external_id or None
    return None


@dataclass
class ShadowState:
    """Effective shadow for one Drive file after collapsing its records."""

    hidden: bool = False
    override: ShadowLike | None = None


def _created_key(record: ShadowLike) -> datetime:
    created = record.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        # SQLite returns naive datetimes for timezone-aware columns
        return created.replace(tzinfo=timezone.utc)
    return created


def index_shadows(shadows: Iterable[ShadowLike]) -> dict[str, ShadowState]:
    """Collapse shadow records into one ``ShadowState`` per Drive file id."""
    index: dict[str, ShadowState] = {}
    # sorted() is stable, so equal timestamps keep input order
    for record in sorted(shadows, key=_created_key):
        state = index.setdefault(record.external_item_id, ShadowState())
        if record.is_hidden:
            state.hidden = True
        else:
            state.override = record
    return index


def _pass_through(item: FlatItem, mount: MountLike) -> VisibleResource:
    return VisibleResource(
        id=external_resource_id(item.id),
        title=item.name,
        link=item.web_link or "",
        class_name=mount.class_name,
        category=mount.category,
        resource_type=ResourceType.EXTERNAL_FILE,
        embed_type=EmbedType.IFRAME,
        mime_type=item.mime_type,
        mount_id=mount.id,
        is_external=True,
        created_by=mount.created_by,
        created_at=mount.created_at,
    )


def _apply_override(visible: VisibleResource, override: ShadowLike) -> VisibleResource:
    updates = {
        "title": override.title,
        "link": override.link,
        "class_name": override.class_name,
        "category": override.category,
        "resource_type": override.resource_type,
    }
    return visible.model_copy(
        update={field: value for field, value in updates.items() if value is not None}
    )


def reconcile(
    items: Sequence[FlatItem],
    shadows: Iterable[ShadowLike] | dict[str, ShadowState],
    mount: MountLike,
) -> list[VisibleResource]:
    """Produce the visible entries for one mount's flattened files.

    Args:
        items: Flattened Drive files, in display order.
        shadows: Shadow records, or an index already built by ``index_shadows``.
        mount: The mount the files were expanded from.

    Returns:
        Visible entries in the same order as ``items``, hidden files removed.
    """
    index = shadows if isinstance(shadows, dict) else index_shadows(shadows)

    visible: list[VisibleResource] = []
    for item in items:
        state = index.get(item.id)
        if state is not None and state.hidden:
            continue

        entry = _pass_through(item, mount)
        if state is not None and state.override is not None:
            entry = _apply_override(entry, state.override)
        visible.append(entry)
    return visible
