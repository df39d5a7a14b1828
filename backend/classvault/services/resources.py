"""Resource listing, Drive folder mounts and shadow records.

Listing merges two sources:
- native ``Resource`` rows matching the filters (newest first), and
- the documents of every matching mount, expanded live from Drive and
  reconciled against ``ShadowResource`` rows.

A mount that cannot be expanded (missing folder, denied access, provider
outage, timeout, oversized tree) contributes nothing; the rest of the page is
still served. Mount creation, on the other hand, walks the folder up front and
lets those errors reach the caller.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from classvault.core.logging import get_logger
from classvault.db.models import (
    EmbedType,
    Folder,
    MediaKind,
    Resource,
    ResourceClass,
    ResourceType,
    ShadowResource,
)
from classvault.schemas.resource import (
    MountCreate,
    ResourceListResponse,
    ResourceOverride,
    VisibleResource,
)
from classvault.services.classification import embed_type_for_link
from classvault.services.drive_client import (
    DRIVE_ID_REGEX,
    DriveError,
    DriveNotFoundError,
    parse_folder_url,
)
from classvault.services.drive_tree import (
    DriveTreeNode,
    FlatItem,
    NodeKind,
    TreeMaterializer,
    TreeTooLargeError,
    flatten,
)
from classvault.services.shadow import (
    ShadowState,
    index_shadows,
    parse_external_resource_id,
    reconcile,
)

if TYPE_CHECKING:
    from classvault.core.config import Settings
    from classvault.core.security import CurrentUser
    from classvault.services.drive_client import DriveClient

logger = get_logger(__name__)

# Bound on ids per IN (...) clause when loading shadow records
SHADOW_QUERY_CHUNK = 500


class ResourceError(Exception):
    """Base exception for resource operations."""

    pass


class InvalidInputError(ResourceError):
    """Raised for malformed links or ids that cannot be acted on."""

    pass


class ResourceNotFoundError(ResourceError):
    """Raised when a native resource or folder does not exist."""

    pass


@dataclass(frozen=True)
class ResourceFilters:
    """Listing filters applied to native records."""

    class_name: ResourceClass | None = None
    category: str | None = None
    resource_type: ResourceType | None = None
    search: str | None = None
    folder_id: str | None = None
    visible_classes: frozenset[str] | None = None


class MountExpander:
    """Turns a mount's Drive root id into its flattened documents."""

    def __init__(
        self,
        client: DriveClient,
        max_depth: int = 10,
        max_nodes: int = 5000,
        target_kinds: Iterable[MediaKind] = (MediaKind.DOCUMENT,),
        mount_timeout: float = 60.0,
        max_concurrent_mounts: int = 4,
    ):
        self.client = client
        self.materializer = TreeMaterializer(client, max_depth=max_depth, max_nodes=max_nodes)
        self.target_kinds = frozenset(target_kinds)
        self.mount_timeout = mount_timeout
        self.max_concurrent_mounts = max_concurrent_mounts

    @classmethod
    def from_settings(cls, client: DriveClient, settings: Settings) -> MountExpander:
        return cls(
            client,
            max_depth=settings.drive_max_depth,
            max_nodes=settings.drive_max_nodes,
            target_kinds=[MediaKind(kind) for kind in settings.drive_target_kinds],
            mount_timeout=settings.drive_mount_timeout,
            max_concurrent_mounts=settings.drive_max_concurrent_mounts,
        )

    async def materialize(self, root_id: str) -> DriveTreeNode | None:
        return await self.materializer.materialize(root_id)

    async def expand(self, root_id: str) -> list[FlatItem]:
        """Materialize and flatten; an inaccessible root yields no items."""
        tree = await self.materializer.materialize(root_id)
        if tree is None:
            return []
        return flatten(tree, self.target_kinds)


def native_to_visible(resource: Resource) -> VisibleResource:
    return VisibleResource(
        id=resource.id,
        title=resource.title,
        description=resource.description,
        link=resource.link,
        class_name=resource.class_name,
        category=resource.category,
        resource_type=resource.resource_type,
        embed_type=resource.embed_type or embed_type_for_link(resource.link),
        folder_id=resource.folder_id,
        drive_folder_id=resource.drive_folder_id,
        created_by=resource.created_by,
        created_at=resource.created_at,
    )


def paginate(
    entries: Sequence[VisibleResource], page: int, page_size: int
) -> ResourceListResponse:
    """Slice an ordered listing into one page."""
    total = len(entries)
    pages = math.ceil(total / page_size) if total > 0 else 1
    offset = (page - 1) * page_size
    return ResourceListResponse(
        resources=list(entries[offset:offset + page_size]),
        total_resources=total,
        total_pages=pages,
        current_page=page,
    )


class ResourceService:
    """Service for listing resources and managing mounts and shadows."""

    def __init__(self, db: AsyncSession, expander: MountExpander):
        """Initialize the resource service.

        Args:
            db: AsyncSession for database operations.
            expander: Drive tree access for mounts.
        """
        self.db = db
        self.expander = expander

    # ========== Listing ==========

    async def list_resources(
        self, filters: ResourceFilters, page: int = 1, page_size: int = 12
    ) -> ResourceListResponse:
        """List native resources and expanded mounts, newest first."""
        records = await self._query_native(filters)
        mounts = [r for r in records if r.is_mount]

        expanded = await self._expand_mounts(mounts)
        shadow_index = await self._load_shadow_index(
            item.id for items in expanded.values() for item in items
        )

        entries: list[VisibleResource] = []
        for record in records:
            if record.is_mount:
                entries.extend(reconcile(expanded.get(record.id, []), shadow_index, record))
            else:
                entries.append(native_to_visible(record))

        logger.debug(
            "resources_listed",
            native=len(records) - len(mounts),
            mounts=len(mounts),
            total=len(entries),
            page=page,
        )
        return paginate(entries, page, page_size)

    async def _query_native(self, filters: ResourceFilters) -> list[Resource]:
        query = select(Resource).where(Resource.is_hidden.is_(False))

        if filters.folder_id:
            query = query.where(Resource.folder_id == filters.folder_id)
        if filters.class_name:
            query = query.where(Resource.class_name == filters.class_name)
        if filters.visible_classes is not None:
            query = query.where(
                Resource.class_name.in_([ResourceClass(c) for c in filters.visible_classes])
            )
        if filters.category and filters.category != "all":
            query = query.where(Resource.category == filters.category)
        if filters.resource_type:
            query = query.where(Resource.resource_type == filters.resource_type)
        if filters.search:
            query = query.where(
                or_(
                    Resource.title.icontains(filters.search, autoescape=True),
                    Resource.description.icontains(filters.search, autoescape=True),
                )
            )

        query = query.order_by(Resource.created_at.desc(), Resource.id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _expand_mounts(self, mounts: Sequence[Resource]) -> dict[str, list[FlatItem]]:
        """Expand mounts concurrently, isolating each mount's failures."""
        if not mounts:
            return {}

        semaphore = asyncio.Semaphore(self.expander.max_concurrent_mounts)

        async def expand_one(mount: Resource) -> tuple[str, list[FlatItem]]:
            async with semaphore:
                try:
                    items = await asyncio.wait_for(
                        self.expander.expand(mount.drive_folder_id),
                        timeout=self.expander.mount_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning(
                        "mount_expansion_timeout",
                        mount_id=mount.id,
                        drive_folder_id=mount.drive_folder_id,
                        timeout_seconds=self.expander.mount_timeout,
                    )
                    return mount.id, []
                except TreeTooLargeError as e:
                    logger.error(
                        "mount_tree_too_large",
                        mount_id=mount.id,
                        drive_folder_id=mount.drive_folder_id,
                        limit=e.limit,
                        value=e.value,
                    )
                    return mount.id, []
                except DriveError as e:
                    logger.warning(
                        "mount_expansion_failed",
                        mount_id=mount.id,
                        drive_folder_id=mount.drive_folder_id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    return mount.id, []
                except Exception as e:
                    logger.exception(
                        "mount_expansion_error",
                        mount_id=mount.id,
                        drive_folder_id=mount.drive_folder_id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    return mount.id, []
                return mount.id, items

        results = await asyncio.gather(*(expand_one(m) for m in mounts))
        return dict(results)

    async def _load_shadow_index(self, external_ids: Iterable[str]) -> dict[str, ShadowState]:
        ids = list(dict.fromkeys(external_ids))
        if not ids:
            return {}

        shadows: list[ShadowResource] = []
        for start in range(0, len(ids), SHADOW_QUERY_CHUNK):
            chunk = ids[start:start + SHADOW_QUERY_CHUNK]
            result = await self.db.execute(
                select(ShadowResource)
                .where(ShadowResource.external_item_id.in_(chunk))
                .order_by(ShadowResource.created_at)
            )
            shadows.extend(result.scalars().all())
        return index_shadows(shadows)

    # ========== Mounts ==========

    @staticmethod
    def extract_drive_folder_id(folder_link: str) -> str:
        """Get the Drive folder id from a sharing URL or a bare id.

        Raises:
            InvalidInputError: If no folder id can be extracted.
        """
        link = folder_link.strip()
        folder_id = parse_folder_url(link)
        if folder_id is None and DRIVE_ID_REGEX.match(link):
            folder_id = link
        if folder_id is None:
            raise InvalidInputError(
                "Invalid Google Drive folder link. Please ensure it is a valid folder URL."
            )
        return folder_id

    async def create_mount(
        self, data: MountCreate, user: CurrentUser
    ) -> tuple[Resource, int]:
        """Validate a shared folder and persist a mount for it.

        Returns:
            The new mount and the number of documents currently visible in it.

        Raises:
            InvalidInputError: Malformed link, link to a file, unknown folder_id.
            DriveNotFoundError: The folder does not exist or is not shared.
            DrivePermissionError: The service account cannot read the folder.
            DriveUnavailableError: Drive could not be reached.
            TreeTooLargeError: The folder tree exceeds the configured limits.
        """
        drive_folder_id = self.extract_drive_folder_id(data.folder_link)

        if data.folder_id:
            await self._get_folder_or_raise(data.folder_id)

        tree = await self.expander.materialize(drive_folder_id)
        if tree is None:
            raise DriveNotFoundError(f"Drive folder {drive_folder_id} not found")
        if tree.kind != NodeKind.FOLDER:
            raise InvalidInputError("The link points to a file, not a folder")

        documents = flatten(tree, self.expander.target_kinds)

        mount = Resource(
            title=data.title or tree.name,
            description=data.description,
            link=tree.web_link or data.folder_link,
            class_name=data.class_name,
            category=data.category,
            resource_type=ResourceType.GDRIVE_FOLDER,
            embed_type=EmbedType.IFRAME,
            folder_id=data.folder_id,
            drive_folder_id=drive_folder_id,
            created_by=user.user_id,
        )
        self.db.add(mount)
        await self.db.flush()

        logger.info(
            "mount_created",
            mount_id=mount.id,
            drive_folder_id=drive_folder_id,
            documents_found=len(documents),
        )
        return mount, len(documents)

    # ========== Shadows ==========

    async def override_external(
        self,
        resource_id: str,
        data: ResourceOverride,
        user: CurrentUser,
        mount_id: str | None = None,
    ) -> ShadowResource:
        """Record an override for a mirrored file (``ext-<id>``)."""
        external_id = parse_external_resource_id(resource_id)
        if external_id is None:
            raise InvalidInputError("Only mirrored Drive items can be overridden")
        await self._check_mount(mount_id)

        shadow = ShadowResource(
            external_item_id=external_id,
            mount_id=mount_id,
            title=data.title,
            link=data.link,
            class_name=data.class_name,
            category=data.category,
            resource_type=data.resource_type,
            is_hidden=False,
            created_by=user.user_id,
        )
        self.db.add(shadow)
        await self.db.flush()

        logger.info("shadow_override_created", shadow_id=shadow.id, external_item_id=external_id)
        return shadow

    async def delete_resource(
        self, resource_id: str, user: CurrentUser, mount_id: str | None = None
    ) -> str:
        """Remove an entry from listings.

        - ``ext-`` ids get a hide shadow record
        - mounts are deleted (nothing external is touched)
        - other native resources are soft-hidden

        Returns:
            The action taken: "hidden", "unmounted" or "soft_deleted".
        """
        external_id = parse_external_resource_id(resource_id)
        if external_id is not None:
            await self._check_mount(mount_id)
            shadow = ShadowResource(
                external_item_id=external_id,
                mount_id=mount_id,
                is_hidden=True,
                created_by=user.user_id,
            )
            self.db.add(shadow)
            await self.db.flush()
            logger.info("shadow_hide_created", shadow_id=shadow.id, external_item_id=external_id)
            return "hidden"

        resource = await self.db.get(Resource, resource_id)
        if resource is None:
            raise ResourceNotFoundError("Resource not found")

        if resource.is_mount:
            await self.db.delete(resource)
            await self.db.flush()
            logger.info("mount_deleted", mount_id=resource_id, deleted_by=user.user_id)
            return "unmounted"

        resource.is_hidden = True
        await self.db.flush()
        logger.info("resource_soft_deleted", resource_id=resource_id, deleted_by=user.user_id)
        return "soft_deleted"

    async def _check_mount(self, mount_id: str | None) -> None:
        if mount_id is None:
            return
        mount = await self.db.get(Resource, mount_id)
        if mount is None or not mount.is_mount:
            raise InvalidInputError(f"{mount_id} is not a Drive folder mount")

    async def _get_folder_or_raise(self, folder_id: str) -> Folder:
        folder = await self.db.get(Folder, folder_id)
        if folder is None:
            raise InvalidInputError("Folder not found")
        return folder
