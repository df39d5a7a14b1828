"""Business logic services for ClassVault."""

from classvault.services.drive_client import DriveClient, DriveClientConfig, DriveError
from classvault.services.drive_tree import TreeMaterializer, flatten
from classvault.services.folders import FolderService
from classvault.services.resources import MountExpander, ResourceService
from classvault.services.shadow import reconcile

__all__ = [
    "DriveClient",
    "DriveClientConfig",
    "DriveError",
    "FolderService",
    "MountExpander",
    "ResourceService",
    "TreeMaterializer",
    "flatten",
    "reconcile",
]
