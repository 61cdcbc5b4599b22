"""dirnotes core - directory annotations kept in sync with the file tree."""

from dirnotes_core.config import DirnotesConfig, load_config
from dirnotes_core.document import DocumentStore
from dirnotes_core.fileops import ClipboardSession, FileOperations
from dirnotes_core.index import AnnotationIndex, CommentResolver
from dirnotes_core.refresh import RefreshScheduler
from dirnotes_core.tree import AnnotationDocument, DirectoryNode, merge_nodes, scan_directories
from dirnotes_core.workspace import AnnotationWorkspace

__version__ = "0.1.0"

__all__ = [
    "AnnotationDocument",
    "AnnotationIndex",
    "AnnotationWorkspace",
    "ClipboardSession",
    "CommentResolver",
    "DirectoryNode",
    "DirnotesConfig",
    "DocumentStore",
    "FileOperations",
    "RefreshScheduler",
    "load_config",
    "merge_nodes",
    "scan_directories",
]
