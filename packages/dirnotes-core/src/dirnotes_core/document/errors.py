"""Errors raised by the document store."""

from __future__ import annotations

from pathlib import Path


class DocumentError(Exception):
    """Base class for annotation document failures."""

    def __init__(self, path: Path, cause: Exception, message: str) -> None:
        self.path = path
        super().__init__(f"{message} {path}: {cause}")
        self.__cause__ = cause


class DocumentCorruptError(DocumentError):
    """The document exists but cannot be parsed or validated."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(path, cause, "Unreadable annotation document")


class DocumentReadError(DocumentError):
    """The document exists but the filesystem refused to hand over its bytes."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(path, cause, "Cannot read annotation document")


class DocumentWriteError(DocumentError):
    """The document could not be written to disk."""

    def __init__(self, path: Path, cause: Exception) -> None:
        super().__init__(path, cause, "Failed to write annotation document")
