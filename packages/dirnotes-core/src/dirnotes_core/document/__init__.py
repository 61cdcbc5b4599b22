"""Persistence of the annotation document."""

from dirnotes_core.document.errors import (
    DocumentCorruptError,
    DocumentError,
    DocumentReadError,
    DocumentWriteError,
)
from dirnotes_core.document.store import (
    DEFAULT_FILENAME,
    DocumentStore,
    parse_document,
    serialize_document,
)

__all__ = [
    "DEFAULT_FILENAME",
    "DocumentCorruptError",
    "DocumentError",
    "DocumentReadError",
    "DocumentStore",
    "DocumentWriteError",
    "parse_document",
    "serialize_document",
]
