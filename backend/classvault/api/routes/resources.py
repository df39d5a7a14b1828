"""Resource API endpoints: listing, Drive folder mounts and shadow records."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classvault.api.deps import get_mount_expander
from classvault.api.routes.errors import drive_http_error, resource_http_error
from classvault.core.config import settings
from classvault.core.logging import get_logger
from classvault.core.security import CurrentUser, get_current_user, require_admin
from classvault.db import get_db
from classvault.db.models import ResourceClass, ResourceType
from classvault.schemas.resource import (
    DeleteResponse,
    MountCreate,
    MountResponse,
    ResourceListResponse,
    ResourceOverride,
    ShadowResponse,
)
from classvault.services.drive_client import DriveError
from classvault.services.resources import (
    InvalidInputError,
    MountExpander,
    ResourceFilters,
    ResourceNotFoundError,
    ResourceService,
    native_to_visible,
)
from classvault.services.shadow import external_resource_id

logger = get_logger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=ResourceListResponse)
async def list_resources(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"
    ),
    class_name: ResourceClass | None = Query(None, alias="class", description="Filter by class"),
    category: str | None = Query(None, description="Filter by category"),
    resource_type: ResourceType | None = Query(None, alias="type", description="Filter by type"),
    search: str | None = Query(None, max_length=200, description="Search titles and descriptions"),
    folder_id: str | None = Query(None, description="Filter by taxonomy folder"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    expander: MountExpander = Depends(get_mount_expander),
) -> ResourceListResponse:
    """List visible resources with mirrored Drive documents expanded in place.

    Filters apply to stored records; documents inside a mount inherit the
    mount's class and category.
    """
    visible = user.visible_classes()
    filters = ResourceFilters(
        class_name=class_name,
        category=category or None,
        resource_type=resource_type,
        search=(search or "").strip() or None,
        folder_id=folder_id,
        visible_classes=frozenset(visible) if visible is not None else None,
    )

    service = ResourceService(db, expander)
    return await service.list_resources(filters, page=page, page_size=page_size)


@router.post("/mounts", response_model=MountResponse, status_code=201)
async def create_mount(
    data: MountCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    expander: MountExpander = Depends(get_mount_expander),
) -> MountResponse:
    """Mount a shared Drive folder into the catalog.

    The folder is walked once before saving so a bad link, missing share or
    oversized tree is reported immediately.
    """
    service = ResourceService(db, expander)
    try:
        mount, documents_found = await service.create_mount(data, user)
    except (InvalidInputError, ResourceNotFoundError) as e:
        raise resource_http_error(e) from e
    except DriveError as e:
        logger.warning(
            "mount_validation_failed",
            folder_link=data.folder_link,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise drive_http_error(e, expander.client.service_account_email) from e

    await db.commit()
    return MountResponse(resource=native_to_visible(mount), documents_found=documents_found)


@router.put("/{resource_id}", response_model=ShadowResponse)
async def override_resource(
    resource_id: str,
    data: ResourceOverride,
    mount_id: str | None = Query(None, description="Mount the item was listed under"),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    expander: MountExpander = Depends(get_mount_expander),
) -> ShadowResponse:
    """Override the catalog fields of a mirrored Drive document.

    Every call records a new override; the newest one is shown.
    """
    service = ResourceService(db, expander)
    try:
        shadow = await service.override_external(resource_id, data, user, mount_id=mount_id)
    except (InvalidInputError, ResourceNotFoundError) as e:
        raise resource_http_error(e) from e

    await db.commit()
    return ShadowResponse(
        id=shadow.id,
        external_item_id=shadow.external_item_id,
        resource_id=external_resource_id(shadow.external_item_id),
        is_hidden=shadow.is_hidden,
        created_by=shadow.created_by,
        created_at=shadow.created_at,
    )


@router.delete("/{resource_id}", response_model=DeleteResponse)
async def delete_resource(
    resource_id: str,
    mount_id: str | None = Query(None, description="Mount the item was listed under"),
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    expander: MountExpander = Depends(get_mount_expander),
) -> DeleteResponse:
    """Hide a mirrored document, remove a mount, or soft-delete a resource."""
    service = ResourceService(db, expander)
    try:
        action = await service.delete_resource(resource_id, user, mount_id=mount_id)
    except (InvalidInputError, ResourceNotFoundError) as e:
        raise resource_http_error(e) from e

    await db.commit()

    messages = {
        "hidden": "Drive item hidden from listings",
        "unmounted": "Drive folder mount removed",
        "soft_deleted": "Resource deleted",
    }
    return DeleteResponse(id=resource_id, action=action, message=messages[action])
