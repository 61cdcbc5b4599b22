"""Load and persist the annotation document at the workspace root."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path

from pydantic import ValidationError

from dirnotes_core.document.errors import (
    DocumentCorruptError,
    DocumentError,
    DocumentReadError,
    DocumentWriteError,
)
from dirnotes_core.tree.models import AnnotationDocument

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "directory-config.json"


def serialize_document(doc: AnnotationDocument) -> str:
    """Render *doc* as pretty-printed JSON with non-ASCII text kept as-is."""
    return json.dumps(doc.model_dump(), indent=2, ensure_ascii=False)


def parse_document(raw: str) -> AnnotationDocument:
    """Parse JSON text into a document. Raises ValueError or ValidationError."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return AnnotationDocument.model_validate(data)


class DocumentStore:
    """Sole owner of ``directory-config.json`` for one workspace root.

    Every write replaces the whole file. Mutations that must not interleave
    (a refresh cycle's read-modify-write, a single comment update) go
    through :meth:`locked`.
    """

    def __init__(self, root: str | Path, filename: str = DEFAULT_FILENAME) -> None:
        self.root = Path(root)
        self.filename = filename
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self.root / self.filename

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.filename + ".bak")

    def exists(self) -> bool:
        return self.path.is_file()

    def locked(self) -> asyncio.Lock:
        """The lock serializing document mutations, for ``async with``."""
        return self._lock

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def load(self) -> AnnotationDocument | None:
        """Read the document; None when the file does not exist.

        Raises DocumentCorruptError when the content is not a valid
        document, DocumentReadError when the file cannot be read at all.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise DocumentCorruptError(self.path, e) from e
        except OSError as e:
            raise DocumentReadError(self.path, e) from e

        try:
            return parse_document(raw)
        except (ValueError, ValidationError) as e:
            raise DocumentCorruptError(self.path, e) from e

    def save(self, doc: AnnotationDocument) -> None:
        """Write *doc* atomically: temp file in the same directory, then rename."""
        self._write(serialize_document(doc))

    def save_if_changed(self, doc: AnnotationDocument) -> bool:
        """Like :meth:`save`, but skip the write when the file already matches.

        Returns True if the file was written.
        """
        content = serialize_document(doc)
        try:
            if self.path.read_text(encoding="utf-8") == content:
                return False
        except (OSError, UnicodeDecodeError):
            # Missing or unreadable; the write below replaces it
            pass
        self._write(content)
        return True

    def _write(self, content: str) -> None:
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.filename}.", suffix=".tmp", dir=self.root
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error("Failed to save %s: %s", self.path, e)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise DocumentWriteError(self.path, e) from e
        logger.debug("Saved %s", self.path)

    def backup_corrupt(self) -> Path | None:
        """Copy the current (unreadable) document aside before it is replaced."""
        if not self.exists():
            return None
        try:
            shutil.copyfile(self.path, self.backup_path)
        except OSError as e:
            logger.warning("Could not back up %s: %s", self.path, e)
            return None
        return self.backup_path

    # ------------------------------------------------------------------
    # Point mutation
    # ------------------------------------------------------------------

    def set_comment(self, path: str, comment: str) -> bool:
        """Set the comment of the directory at *path* and persist.

        Returns False when there is no document or *path* is not in it.
        The directory must already be present: run a refresh first for
        freshly created directories.
        """
        try:
            doc = self.load()
        except DocumentError as e:
            logger.warning("Cannot set comment: %s", e)
            return False
        if doc is None:
            return False

        node = doc.find(path)
        if node is None:
            logger.info("No directory %r in %s", path, self.path)
            return False

        node.comment = comment
        self.save(doc)
        return True

    async def update_comment(self, path: str, comment: str) -> bool:
        """:meth:`set_comment` under the mutation lock."""
        async with self._lock:
            return self.set_comment(path, comment)
