"""Directory tree subsystem: models, scanner and merger."""

from dirnotes_core.tree.merger import merge_documents, merge_nodes
from dirnotes_core.tree.models import (
    DOCUMENT_VERSION,
    AnnotationDocument,
    DirectoryNode,
    iter_nodes,
    join_segments,
    split_path,
)
from dirnotes_core.tree.scanner import (
    DirectoryListing,
    is_excluded,
    list_directory,
    path_is_excluded,
    scan_directories,
)

__all__ = [
    "DOCUMENT_VERSION",
    "AnnotationDocument",
    "DirectoryListing",
    "DirectoryNode",
    "is_excluded",
    "iter_nodes",
    "join_segments",
    "list_directory",
    "merge_documents",
    "merge_nodes",
    "path_is_excluded",
    "scan_directories",
    "split_path",
]
