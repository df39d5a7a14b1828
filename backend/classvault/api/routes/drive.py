"""Google Drive folder preview endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from classvault.api.deps import get_mount_expander
from classvault.api.routes.errors import drive_http_error, resource_http_error
from classvault.core.logging import get_logger
from classvault.core.security import CurrentUser, require_admin
from classvault.schemas.resource import DriveFolderRequest
from classvault.services.drive_client import DriveError, DriveNotFoundError
from classvault.services.drive_tree import DriveTreeNode
from classvault.services.resources import InvalidInputError, MountExpander, ResourceService

logger = get_logger(__name__)

router = APIRouter(prefix="/drive", tags=["drive"])


@router.post("/folder", response_model=DriveTreeNode)
async def preview_drive_folder(
    data: DriveFolderRequest,
    user: CurrentUser = Depends(require_admin),
    expander: MountExpander = Depends(get_mount_expander),
) -> DriveTreeNode:
    """Return the folder tree behind a sharing link without saving anything."""
    try:
        folder_id = ResourceService.extract_drive_folder_id(data.folder_link)
        tree = await expander.materialize(folder_id)
        if tree is None:
            raise DriveNotFoundError(f"Drive folder {folder_id} not found")
    except InvalidInputError as e:
        raise resource_http_error(e) from e
    except DriveError as e:
        logger.warning("drive_preview_failed", error_type=type(e).__name__, error=str(e))
        raise drive_http_error(e, expander.client.service_account_email) from e

    return tree
