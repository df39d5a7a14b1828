"""Pydantic schemas for the Resource API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from classvault.db.models.enums import EmbedType, ResourceClass, ResourceType


class VisibleResource(BaseModel):
    """One entry of a listing: a native record or a mirrored Drive file.

    Mirrored files carry an ``ext-`` id, type EXTERNAL_FILE and the id of the
    mount they were expanded from.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str | None = None
    link: str
    class_name: ResourceClass = Field(alias="class")
    category: str
    resource_type: ResourceType = Field(alias="type")
    embed_type: EmbedType = EmbedType.EXTERNAL
    mime_type: str | None = None
    folder_id: str | None = None
    drive_folder_id: str | None = None
    mount_id: str | None = None
    is_external: bool = False
    created_by: str
    created_at: datetime


class ResourceListResponse(BaseModel):
    """Paginated listing response."""

    resources: list[VisibleResource]
    total_resources: int
    total_pages: int
    current_page: int


class MountCreate(BaseModel):
    """Schema for mounting a shared Drive folder into the catalog."""

    model_config = ConfigDict(populate_by_name=True)

    folder_link: str = Field(..., min_length=1, max_length=2048)
    title: str | None = Field(
        None, max_length=255, description="Defaults to the Drive folder name"
    )
    description: str | None = Field(None, max_length=4000)
    class_name: ResourceClass = Field(..., alias="class")
    category: str = Field(..., min_length=1, max_length=255)
    folder_id: str | None = Field(None, description="Taxonomy folder to file the mount under")

    @field_validator("folder_link", "category")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class MountResponse(BaseModel):
    """Created mount plus what the validation walk found."""

    resource: VisibleResource
    documents_found: int


class ResourceOverride(BaseModel):
    """Full replacement fields for a mirrored Drive file.

    Partial updates are not accepted: there is no earlier record to merge with.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    link: str = Field(..., min_length=1, max_length=2048)
    class_name: ResourceClass = Field(..., alias="class")
    category: str = Field(..., min_length=1, max_length=255)
    resource_type: ResourceType = Field(..., alias="type")

    @field_validator("resource_type")
    @classmethod
    def reject_mount_type(cls, value: ResourceType) -> ResourceType:
        if value == ResourceType.GDRIVE_FOLDER:
            raise ValueError("a mirrored file cannot become a folder mount")
        return value


class ShadowResponse(BaseModel):
    """Shadow record created by an override or hide."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    external_item_id: str
    resource_id: str
    is_hidden: bool
    created_by: str
    created_at: datetime


class DeleteResponse(BaseModel):
    """Outcome of a delete request."""

    id: str
    action: str
    message: str


class DriveFolderRequest(BaseModel):
    """Request to preview the tree behind a folder link."""

    folder_link: str = Field(..., min_length=1, max_length=2048)
