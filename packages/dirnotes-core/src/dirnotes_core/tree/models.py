"""Pydantic models for the annotation document."""

from __future__ import annotations

import copy
import os
from collections.abc import Iterator

from pydantic import BaseModel, Field, field_validator, model_validator

DOCUMENT_VERSION = "1.0"

# Separator used for every persisted path, on every platform
PATH_SEP = "/"

_BACKSLASH_SEPARATES = os.sep == "\\"


def join_segments(segments: tuple[str, ...] | list[str]) -> str:
    """Join path segments into the persisted relative path form."""
    return PATH_SEP.join(segments)


def split_path(path: str) -> tuple[str, ...]:
    """Split a relative path into its segments.

    ``\\`` separates only on Windows. Elsewhere it is a legal character
    in a directory name and stays part of the segment.
    """
    if _BACKSLASH_SEPARATES:
        path = path.replace("\\", PATH_SEP)
    return tuple(part for part in path.split(PATH_SEP) if part and part != ".")


def migrate_legacy_paths(nodes: list, parent: str | None = None) -> None:
    """Rewrite ``\\``-joined child paths from Windows-written documents, in place.

    A raw node is legacy when its path extends its parent's raw path with
    a backslash. Top-level paths carry no separator and are left alone.
    """
    for node in nodes:
        if not isinstance(node, dict):
            continue
        raw = node.get("path")
        if not isinstance(raw, str):
            raw = None
        elif parent is not None and raw.startswith(parent + "\\"):
            node["path"] = raw.replace("\\", PATH_SEP)
        children = node.get("children")
        if isinstance(children, list):
            migrate_legacy_paths(children, raw)


class DirectoryNode(BaseModel):
    """One directory in the annotation tree."""

    path: str = Field(min_length=1, description="Path relative to the workspace root")
    comment: str = ""
    children: list[DirectoryNode] = Field(default_factory=list)

    @field_validator("path")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        segments = split_path(v)
        if not segments:
            raise ValueError(f"path must name a directory below the root, got {v!r}")
        return join_segments(segments)

    @field_validator("comment", mode="before")
    @classmethod
    def none_comment_is_empty(cls, v: str | None) -> str:
        return "" if v is None else v

    @field_validator("children", mode="before")
    @classmethod
    def none_children_is_empty(cls, v: list | None) -> list:
        return [] if v is None else v

    @property
    def key(self) -> tuple[str, ...]:
        """Identity used for merge matching."""
        return split_path(self.path)

    @property
    def name(self) -> str:
        return self.key[-1]


class AnnotationDocument(BaseModel):
    """The persisted root object of ``directory-config.json``."""

    version: str = DOCUMENT_VERSION
    directories: list[DirectoryNode] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def migrate_legacy(cls, data):
        nodes = data.get("directories") if isinstance(data, dict) else None
        if isinstance(nodes, list) and any(isinstance(n, dict) for n in nodes):
            data = copy.deepcopy(data)
            migrate_legacy_paths(data["directories"])
        return data

    def walk(self) -> Iterator[DirectoryNode]:
        """Yield every node depth-first, parents before children."""
        return iter_nodes(self.directories)

    def find(self, path: str) -> DirectoryNode | None:
        """Return the node at *path*, or None."""
        target = split_path(path)
        for node in self.walk():
            if node.key == target:
                return node
        return None


def iter_nodes(nodes: list[DirectoryNode]) -> Iterator[DirectoryNode]:
    """Depth-first pre-order traversal over a list of sibling nodes."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))
