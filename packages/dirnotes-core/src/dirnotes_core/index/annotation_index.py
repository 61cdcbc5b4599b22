"""Flattened path -> comment lookup built from the annotation document."""

from __future__ import annotations

from collections.abc import Iterator

from dirnotes_core.tree.models import AnnotationDocument, join_segments, split_path


class AnnotationIndex:
    """In-memory projection of every non-empty comment in a document.

    Always rebuilt in full; never persisted.
    """

    def __init__(self) -> None:
        self._comments: dict[str, str] = {}

    def rebuild(self, document: AnnotationDocument | None) -> None:
        comments: dict[str, str] = {}
        if document is not None:
            for node in document.walk():
                if node.comment:
                    comments[node.path] = node.comment
        # Swap in one step so readers never see a half-built map
        self._comments = comments

    def clear(self) -> None:
        self._comments = {}

    def get(self, path: str) -> str:
        """Comment for the directory at *path*, or an empty string."""
        return self._comments.get(join_segments(split_path(path)), "")

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._comments.items())

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and bool(self.get(path))

    def __len__(self) -> int:
        return len(self._comments)
