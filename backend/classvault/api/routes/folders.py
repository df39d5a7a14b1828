"""Folder taxonomy endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from classvault.api.routes.errors import resource_http_error
from classvault.core.security import CurrentUser, get_current_user, require_admin
from classvault.db import get_db
from classvault.schemas.folder import FolderCreate, FolderResponse
from classvault.services.folders import FolderService
from classvault.services.resources import ResourceNotFoundError

router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("", response_model=list[FolderResponse])
async def list_folders(
    parent_id: str | None = Query(None, description="Parent folder (top level if omitted)"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[FolderResponse]:
    """List subfolders visible to the caller, sorted by name."""
    folders = await FolderService(db).list_folders(parent_id, user.visible_classes())
    return [FolderResponse.model_validate(f) for f in folders]


@router.post("", response_model=FolderResponse, status_code=201)
async def create_folder(
    data: FolderCreate,
    user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FolderResponse:
    """Create a folder, optionally nested under ``parent_id``."""
    try:
        folder = await FolderService(db).create_folder(
            data.name, data.class_name, user, parent_id=data.parent_id
        )
    except ResourceNotFoundError as e:
        raise resource_http_error(e) from e

    await db.commit()
    return FolderResponse.model_validate(folder)
