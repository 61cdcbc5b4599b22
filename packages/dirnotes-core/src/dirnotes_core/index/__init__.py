"""Annotation lookup for rendering surfaces."""

from dirnotes_core.index.annotation_index import AnnotationIndex
from dirnotes_core.index.resolver import (
    MANIFEST_FILENAME,
    CommentResolver,
    read_manifest_pages,
)

__all__ = [
    "MANIFEST_FILENAME",
    "AnnotationIndex",
    "CommentResolver",
    "read_manifest_pages",
]
