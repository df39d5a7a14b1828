"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request

from classvault.services.resources import MountExpander


def get_mount_expander(request: Request) -> MountExpander:
    """Return the process-wide expander created at startup."""
    expander = getattr(request.app.state, "mount_expander", None)
    if expander is None:
        raise HTTPException(status_code=503, detail="Drive mirroring is not initialised")
    return expander
