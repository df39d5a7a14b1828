"""Materialize Drive folder trees and flatten them into document lists.

The materializer walks a folder one level at a time through ``DriveClient``
and builds an in-memory mirror. Cycle protection is path-scoped: each branch
carries its own copy of the ancestor ids, so a folder reachable from two
independent parents is walked under both, while a folder that contains one
of its own ancestors (possible with shortcuts) is cut at the revisit point.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from classvault.core.logging import get_logger
from classvault.db.models.enums import MediaKind
from classvault.services.classification import classify_mime_type
from classvault.services.drive_client import DriveError, DriveFile, DriveNotFoundError

logger = get_logger(__name__)


class TreeTooLargeError(DriveError):
    """Raised when a mirrored tree exceeds the configured depth or size."""

    def __init__(self, message: str, limit: str, value: int):
        super().__init__(message)
        self.limit = limit
        self.value = value


class NodeKind(str, Enum):
    FOLDER = "FOLDER"
    FILE = "FILE"


class DriveTreeNode(BaseModel):
    """One node of a materialized Drive tree."""

    id: str
    name: str
    kind: NodeKind
    mime_type: str
    web_link: str | None = None
    children: list[DriveTreeNode] | None = None

    @classmethod
    def from_file(cls, file: DriveFile) -> DriveTreeNode:
        if file.is_folder:
            return cls(
                id=file.id,
                name=file.name,
                kind=NodeKind.FOLDER,
                mime_type=file.mime_type,
                web_link=file.web_view_link,
                children=[],
            )
        return cls(
            id=file.id,
            name=file.name,
            kind=NodeKind.FILE,
            mime_type=file.mime_type,
            web_link=file.web_view_link,
        )


class FlatItem(BaseModel):
    """A leaf file selected by the flattener."""

    id: str
    name: str
    mime_type: str
    web_link: str | None = None


class TreeSource(Protocol):
    """The subset of ``DriveClient`` the materializer needs."""

    async def get_node(self, file_id: str) -> DriveFile: ...

    async def get_children(self, folder_id: str) -> list[DriveFile]: ...


class TreeMaterializer:
    """Recursively fetch a Drive tree into ``DriveTreeNode`` objects.

    Args:
        client: Source of node metadata and child listings.
        max_depth: Deepest folder level expanded below the root (root is 0).
            Files inside a folder at that level are still listed.
        max_nodes: Maximum number of nodes in one tree, root included.
    """

    def __init__(self, client: TreeSource, max_depth: int = 10, max_nodes: int = 5000):
        self.client = client
        self.max_depth = max_depth
        self.max_nodes = max_nodes

    async def materialize(self, root_id: str) -> DriveTreeNode | None:
        """Build the tree under ``root_id``.

        Returns:
            The root node, or None if the root does not exist or is not shared.

        Raises:
            TreeTooLargeError: If the tree exceeds max_depth or max_nodes.
            DrivePermissionError: If the provider denies access.
            DriveUnavailableError: On provider failure or timeout.
        """
        try:
            root_file = await self.client.get_node(root_id)
        except DriveNotFoundError:
            logger.info("drive_root_not_found", root_id=root_id)
            return None

        root = DriveTreeNode.from_file(root_file)
        if root.kind == NodeKind.FOLDER:
            counter = _NodeCounter(self.max_nodes)
            root.children = await self._fetch_children(root.id, {root.id}, 1, counter)
        return root

    async def _fetch_children(
        self,
        folder_id: str,
        ancestors: set[str],
        depth: int,
        counter: _NodeCounter,
    ) -> list[DriveTreeNode]:
        children: list[DriveTreeNode] = []
        for file in await self.client.get_children(folder_id):
            counter.add(1)
            node = DriveTreeNode.from_file(file)

            if node.kind == NodeKind.FOLDER:
                if node.id in ancestors:
                    logger.debug("drive_cycle_cut", folder_id=node.id, parent_id=folder_id)
                elif depth > self.max_depth:
                    raise TreeTooLargeError(
                        f"Folder nesting exceeds the maximum depth of {self.max_depth}",
                        limit="max_depth",
                        value=depth,
                    )
                else:
                    node.children = await self._fetch_children(
                        node.id, ancestors | {node.id}, depth + 1, counter
                    )

            children.append(node)
        return children


class _NodeCounter:
    """Running node total shared by every branch of one materialization."""

    def __init__(self, limit: int):
        self.limit = limit
        self.count = 1  # the root

    def add(self, n: int) -> None:
        self.count += n
        if self.count > self.limit:
            raise TreeTooLargeError(
                f"Folder tree has more than {self.limit} items",
                limit="max_nodes",
                value=self.count,
            )


def iter_preorder(node: DriveTreeNode) -> Iterator[DriveTreeNode]:
    """Yield ``node`` and its descendants in pre-order."""
    yield node
    for child in node.children or ():
        yield from iter_preorder(child)


def flatten(
    tree: DriveTreeNode | None,
    target_kinds: Iterable[MediaKind] = (MediaKind.DOCUMENT,),
) -> list[FlatItem]:
    """Project a tree onto its files whose media kind is in ``target_kinds``.

    Folders are never emitted. Order is pre-order over the tree, so it follows
    the provider's child order within each folder.
    """
    if tree is None:
        return []

    targets = frozenset(target_kinds)
    return [
        FlatItem(id=node.id, name=node.name, mime_type=node.mime_type, web_link=node.web_link)
        for node in iter_preorder(tree)
        if node.kind == NodeKind.FILE and classify_mime_type(node.mime_type) in targets
    ]
