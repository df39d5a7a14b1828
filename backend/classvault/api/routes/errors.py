"""Translate service errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from classvault.services.drive_client import (
    DriveError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveUnavailableError,
)
from classvault.services.drive_tree import TreeTooLargeError
from classvault.services.resources import InvalidInputError, ResourceNotFoundError


def drive_http_error(e: DriveError, service_account_email: str | None) -> HTTPException:
    """Map a Drive error raised during a user-facing operation."""
    if isinstance(e, DriveNotFoundError):
        return HTTPException(
            status_code=404,
            detail="Folder not found. Please check the link.",
        )
    if isinstance(e, DrivePermissionError):
        target = service_account_email or "the service account"
        return HTTPException(
            status_code=403,
            detail=f"Permission denied. Please share the folder with {target}.",
        )
    if isinstance(e, TreeTooLargeError):
        return HTTPException(
            status_code=422,
            detail=f"Folder tree is too large to mirror ({e.limit} exceeded: {e.value}).",
        )
    if isinstance(e, DriveUnavailableError):
        return HTTPException(status_code=502, detail=f"Google Drive unavailable: {e}")
    return HTTPException(status_code=502, detail=f"Google Drive error: {e}")


def resource_http_error(e: InvalidInputError | ResourceNotFoundError) -> HTTPException:
    if isinstance(e, ResourceNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
