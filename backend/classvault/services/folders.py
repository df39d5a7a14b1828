"""Folder taxonomy service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classvault.core.logging import get_logger
from classvault.db.models import Folder, ResourceClass
from classvault.services.resources import ResourceNotFoundError

if TYPE_CHECKING:
    from classvault.core.security import CurrentUser

logger = get_logger(__name__)


class FolderService:
    """Create and browse the class/category folder tree."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_folders(
        self, parent_id: str | None, visible_classes: set[str] | None = None
    ) -> list[Folder]:
        """List the direct subfolders of ``parent_id`` (top level when None)."""
        query = select(Folder)
        if parent_id:
            query = query.where(Folder.parent_id == parent_id)
        else:
            query = query.where(Folder.parent_id.is_(None))
        if visible_classes is not None:
            query = query.where(Folder.class_name.in_([ResourceClass(c) for c in visible_classes]))

        result = await self.db.execute(query.order_by(Folder.name))
        return list(result.scalars().all())

    async def create_folder(
        self,
        name: str,
        class_name: ResourceClass,
        user: CurrentUser,
        parent_id: str | None = None,
    ) -> Folder:
        """Create a folder, recording its ancestor path.

        Raises:
            ResourceNotFoundError: If ``parent_id`` does not exist.
        """
        path: list[str] = []
        if parent_id:
            parent = await self.db.get(Folder, parent_id)
            if parent is None:
                raise ResourceNotFoundError("Parent folder not found")
            path = [*(parent.path or []), parent.id]

        folder = Folder(
            name=name,
            class_name=class_name,
            parent_id=parent_id,
            path=path,
            created_by=user.user_id,
        )
        self.db.add(folder)
        await self.db.flush()

        logger.info("folder_created", folder_id=folder.id, parent_id=parent_id, depth=len(path))
        return folder
