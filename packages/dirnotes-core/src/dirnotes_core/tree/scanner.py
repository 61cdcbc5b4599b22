"""Recursive directory scanner producing the canonical annotation tree."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dirnotes_core.config.models import ExcludeConfig
from dirnotes_core.tree.models import DirectoryNode, join_segments

logger = logging.getLogger(__name__)


@dataclass
class DirectoryListing:
    """Immediate contents of one directory, split by entry kind."""

    file_names: list[str] = field(default_factory=list)
    subdirectory_names: list[str] = field(default_factory=list)


def is_excluded(name: str, exclude: ExcludeConfig) -> bool:
    """Return True if an entry called *name* must not be scanned."""
    if name.startswith(".") and not exclude.show_hidden:
        return True
    if name in exclude.denylist:
        return True
    return any(fnmatch.fnmatch(name, pattern) for pattern in exclude.exclude_patterns)


def path_is_excluded(rel_path: str | Path, exclude: ExcludeConfig) -> bool:
    """Return True if any component of a relative path is excluded."""
    return any(is_excluded(part, exclude) for part in Path(rel_path).parts)


def _read_level(directory: str) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return list(it)


async def scan_directories(
    root: str | Path,
    exclude: ExcludeConfig | None = None,
) -> list[DirectoryNode]:
    """Walk *root* and return its directories as a tree of DirectoryNode.

    Files are never represented. Every node comes back with an empty
    comment. A missing or unreadable root yields an empty list.
    """
    exclude = exclude or ExcludeConfig()
    root = Path(root)
    if not root.is_dir():
        logger.warning("Scan root is not a directory: %s", root)
        return []

    try:
        return await _scan_level(str(root), (), exclude)
    except OSError as e:
        logger.warning("Failed to scan %s: %s", root, e)
        return []


async def _scan_level(
    directory: str,
    prefix: tuple[str, ...],
    exclude: ExcludeConfig,
) -> list[DirectoryNode]:
    entries = _read_level(directory)
    nodes: list[DirectoryNode] = []

    for entry in entries:
        if is_excluded(entry.name, exclude):
            continue
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
            segments = prefix + (entry.name,)
            # Let other coroutines run between directory levels
            await asyncio.sleep(0)
            children = await _scan_level(entry.path, segments, exclude)
        except OSError as e:
            logger.warning("Skipping %s: %s", entry.path, e)
            continue
        nodes.append(
            DirectoryNode(path=join_segments(segments), comment="", children=children)
        )

    return nodes


def list_directory(
    directory: str | Path,
    exclude: ExcludeConfig | None = None,
) -> DirectoryListing:
    """List the files and subdirectories directly inside *directory*."""
    exclude = exclude or ExcludeConfig()
    listing = DirectoryListing()
    for entry in _read_level(str(directory)):
        if is_excluded(entry.name, exclude):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                listing.subdirectory_names.append(entry.name)
            else:
                listing.file_names.append(entry.name)
        except OSError as e:
            logger.warning("Skipping %s: %s", entry.path, e)
    return listing
