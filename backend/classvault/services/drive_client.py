"""Google Drive client used to mirror shared folders.

Provides:
- Folder URL parsing
- Service account authentication (read-only scope)
- Node metadata lookup and paginated child listing
- Mapping of Drive API failures onto a small error taxonomy

The client holds no per-request state. It is constructed once at startup from
an immutable ``DriveClientConfig`` and shared by all requests.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import BaseModel

from classvault.core.logging import get_logger
from classvault.services.classification import is_folder_mime_type

if TYPE_CHECKING:
    from classvault.core.config import Settings

logger = get_logger(__name__)

# Google Drive API scopes
SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

TOKEN_URI = "https://oauth2.googleapis.com/token"

NODE_FIELDS = "id, name, mimeType, webViewLink"
CHILD_FIELDS = "nextPageToken, files(id, name, mimeType, webViewLink)"

# Regex for parsing Google Drive folder URLs
DRIVE_FOLDER_REGEX = re.compile(
    r"(?:https?://)?(?:drive\.google\.com/(?:drive/)?(?:u/\d+/)?folders?/|"
    r"drive\.google\.com/open\?id=)([a-zA-Z0-9_-]+)"
)
DRIVE_ID_REGEX = re.compile(r"^[a-zA-Z0-9_-]{10,}$")


class DriveError(Exception):
    """Base exception for Drive mirroring errors."""

    pass


class DriveNotFoundError(DriveError):
    """Raised when a file or folder does not exist or is not shared."""

    pass


class DrivePermissionError(DriveError):
    """Raised when Drive rejects access to a file or folder."""

    pass


class DriveUnavailableError(DriveError):
    """Raised on network, authentication or timeout failures."""

    pass


@dataclass(frozen=True)
class DriveClientConfig:
    """Immutable configuration for ``DriveClient``."""

    service_account_email: str | None
    private_key: str | None
    request_timeout: float = 15.0
    page_size: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> DriveClientConfig:
        return cls(
            service_account_email=settings.google_service_account_email,
            private_key=settings.google_service_account_private_key,
            request_timeout=settings.drive_request_timeout,
            page_size=settings.drive_page_size,
        )

    @property
    def configured(self) -> bool:
        return bool(self.service_account_email and self.private_key)


class DriveFile(BaseModel):
    """Metadata for one Drive file or folder."""

    id: str
    name: str
    mime_type: str
    web_view_link: str | None = None

    @property
    def is_folder(self) -> bool:
        return is_folder_mime_type(self.mime_type)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DriveFile:
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            mime_type=data.get("mimeType") or "application/octet-stream",
            web_view_link=data.get("webViewLink") or None,
        )


def parse_folder_url(url: str) -> str | None:
    """Extract a folder ID from a Google Drive URL.

    Args:
        url: Google Drive folder URL.

    Returns:
        Folder ID or None if not a recognised folder URL.
    """
    if not url:
        return None
    match = DRIVE_FOLDER_REGEX.search(url.strip())
    if match:
        return match.group(1)
    return None


class DriveClient:
    """Read-only access to Drive folder trees through a service account."""

    def __init__(self, config: DriveClientConfig):
        self.config = config
        self._credentials: service_account.Credentials | None = None

    @property
    def service_account_email(self) -> str | None:
        return self.config.service_account_email

    async def get_node(self, file_id: str) -> DriveFile:
        """Fetch metadata for a single file or folder.

        Raises:
            DriveNotFoundError: If the id does not exist or is not shared.
            DrivePermissionError: If access is denied.
            DriveUnavailableError: On network, auth or timeout failure.
        """
        service = self._get_drive_service()
        request = service.files().get(
            fileId=file_id,
            fields=NODE_FIELDS,
            supportsAllDrives=True,
        )
        data = await self._execute(request.execute, operation="get_node", file_id=file_id)
        if not data or not data.get("id"):
            raise DriveNotFoundError(f"Drive item {file_id} not found")
        return DriveFile.from_api(data)

    async def get_children(self, folder_id: str) -> list[DriveFile]:
        """List the direct children of a folder in provider order.

        Follows page tokens until the listing is exhausted. Trashed items are
        excluded; entries missing an id are skipped.
        """
        children: list[DriveFile] = []
        page_token: str | None = None

        while True:
            service = self._get_drive_service()
            request = service.files().list(
                q=f"'{folder_id}' in parents and trashed = false",
                fields=CHILD_FIELDS,
                pageSize=self.config.page_size,
                pageToken=page_token,
                supportsAllDrives=True,
                includeItemsFromAllDrives=True,
            )
            result = await self._execute(
                request.execute, operation="get_children", file_id=folder_id
            )

            for item in result.get("files", []):
                if not item.get("id"):
                    continue
                children.append(DriveFile.from_api(item))

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        return children

    async def _execute(
        self,
        func: Callable[[], dict[str, Any]],
        operation: str,
        file_id: str,
    ) -> dict[str, Any]:
        """Run a blocking API call in a worker thread under the call timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func), timeout=self.config.request_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                "drive_request_timeout",
                operation=operation,
                file_id=file_id,
                timeout_seconds=self.config.request_timeout,
            )
            raise DriveUnavailableError(
                f"Drive {operation} for {file_id} timed out after {self.config.request_timeout}s"
            ) from e
        except HttpError as e:
            status = e.resp.status if e.resp is not None else None
            if status == 404:
                raise DriveNotFoundError(f"Drive item {file_id} not found") from e
            if status == 403:
                raise DrivePermissionError(
                    f"Access denied to Drive item {file_id}"
                ) from e
            raise DriveUnavailableError(f"Drive API error ({status}): {e}") from e
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
            raise DriveUnavailableError(f"Drive request failed: {e}") from e

    def _get_drive_service(self):
        """Build a Drive API service object.

        A fresh service is built per call because the underlying httplib2
        transport is not thread-safe; credentials are cached.
        """
        return build(
            "drive",
            "v3",
            credentials=self._get_credentials(),
            cache_discovery=False,
        )

    def _get_credentials(self) -> service_account.Credentials:
        if self._credentials is not None:
            return self._credentials

        if not self.config.configured:
            raise DriveUnavailableError(
                "Drive credentials not configured. Set CLASSVAULT_GOOGLE_SERVICE_ACCOUNT_EMAIL "
                "and CLASSVAULT_GOOGLE_SERVICE_ACCOUNT_PRIVATE_KEY"
            )

        private_key = (self.config.private_key or "").replace("\\n", "\n")
        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.config.service_account_email,
                    "private_key": private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
        except ValueError as e:
            raise DriveUnavailableError(f"Invalid service account credentials: {e}") from e

        logger.info("drive_credentials_loaded", email=self.config.service_account_email)
        return self._credentials
