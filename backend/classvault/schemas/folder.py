"""Pydantic schemas for the Folder API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from classvault.db.models.enums import ResourceClass


class FolderCreate(BaseModel):
    """Schema for creating a taxonomy folder."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    class_name: ResourceClass = Field(..., alias="class")
    parent_id: str | None = None


class FolderResponse(BaseModel):
    """Folder as returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    class_name: ResourceClass = Field(alias="class")
    parent_id: str | None = None
    path: list[str] = []
    created_by: str
    created_at: datetime
