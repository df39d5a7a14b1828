#!/usr/bin/env python3
"""
Drive Folder Debug Script

Walks a shared Google Drive folder with the service account configured in
CLASSVAULT_* environment variables, prints the folder tree and the documents
a mount of that folder would list.

Usage:
    python scripts/debug_drive.py <folder-link-or-id> [options]

Options:
    --json          Print the materialized tree as JSON instead of a tree view
    --max-depth     Override CLASSVAULT_DRIVE_MAX_DEPTH
    --kinds         Media kinds to list (comma-separated, default from settings)

Requirements:
    - The folder must be shared with the service account email
    - Run from project root directory
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from classvault.core.config import settings  # noqa: E402
from classvault.core.logging import setup_logging  # noqa: E402
from classvault.db.models.enums import MediaKind  # noqa: E402
from classvault.services.drive_client import (  # noqa: E402
    DriveClient,
    DriveClientConfig,
    DriveError,
)
from classvault.services.drive_tree import (  # noqa: E402
    DriveTreeNode,
    NodeKind,
    TreeMaterializer,
    flatten,
)
from classvault.services.resources import InvalidInputError, ResourceService  # noqa: E402


def print_tree(node: DriveTreeNode, indent: int = 0) -> None:
    """Pretty print a materialized tree."""
    marker = "[D]" if node.kind == NodeKind.FOLDER else "[F]"
    print(f"{'  ' * indent}{marker} {node.name}  ({node.mime_type})")
    for child in node.children or []:
        print_tree(child, indent + 1)


async def run(args: argparse.Namespace) -> int:
    try:
        folder_id = ResourceService.extract_drive_folder_id(args.folder)
    except InvalidInputError as e:
        print(f"ERROR: {e}")
        return 2

    kinds = (
        [MediaKind(k.strip().upper()) for k in args.kinds.split(",") if k.strip()]
        if args.kinds
        else [MediaKind(k) for k in settings.drive_target_kinds]
    )

    client = DriveClient(DriveClientConfig.from_settings(settings))
    materializer = TreeMaterializer(
        client,
        max_depth=args.max_depth or settings.drive_max_depth,
        max_nodes=settings.drive_max_nodes,
    )

    print(f"Listing Google Drive folder: {folder_id}")
    try:
        tree = await materializer.materialize(folder_id)
    except DriveError as e:
        print(f"ERROR ({type(e).__name__}): {e}")
        return 1

    if tree is None:
        print("Folder not found or not shared with the service account.")
        return 1

    if args.json:
        print(json.dumps(tree.model_dump(mode="json"), indent=2))
    else:
        print_tree(tree)

    items = flatten(tree, kinds)
    print(f"\n{len(items)} item(s) matching {', '.join(k.value for k in kinds)}:")
    for item in items:
        print(f"  ext-{item.id}  {item.name}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect a shared Drive folder")
    parser.add_argument("folder", help="Drive folder URL or id")
    parser.add_argument("--json", action="store_true", help="Print the tree as JSON")
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--kinds", default=None, help="e.g. DOCUMENT,VIDEO")
    args = parser.parse_args()

    setup_logging("WARNING")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
