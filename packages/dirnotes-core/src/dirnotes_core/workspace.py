"""One workspace root: document store, scheduler, index and resolver together."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import partial
from pathlib import Path

from dirnotes_core.config.models import DirnotesConfig
from dirnotes_core.document import (
    DocumentCorruptError,
    DocumentError,
    DocumentStore,
    DocumentWriteError,
)
from dirnotes_core.index import AnnotationIndex, CommentResolver, read_manifest_pages
from dirnotes_core.refresh import DirectoryWatcher, RefreshScheduler, is_qualifying_event
from dirnotes_core.tree import (
    AnnotationDocument,
    DirectoryListing,
    join_segments,
    list_directory,
    merge_documents,
    scan_directories,
    split_path,
)

logger = logging.getLogger(__name__)

CommentProvider = Callable[[str, DirectoryListing], Awaitable[str]]


class AnnotationWorkspace:
    """Keeps the annotation document of one root in sync with the disk.

    Each instance owns its own scheduler and index; roots never share them.
    """

    def __init__(
        self,
        root: str | Path,
        config: DirnotesConfig | None = None,
        comment_provider: CommentProvider | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config or DirnotesConfig()
        self.comment_provider = comment_provider
        self.store = DocumentStore(self.root, self.config.document.filename)
        self.index = AnnotationIndex()
        self.resolver = CommentResolver(self.index)
        self.document: AnnotationDocument | None = None
        self.scheduler = RefreshScheduler(
            self.refresh_cycle,
            self.config.refresh,
            event_filter=partial(
                is_qualifying_event,
                document_filename=self.store.filename,
                exclude=self.config.exclude,
            ),
            invalidate=self.index.clear,
        )
        self._watcher: DirectoryWatcher | None = None

    # ------------------------------------------------------------------
    # Exposed interface
    # ------------------------------------------------------------------

    def get_index(self) -> Callable[[str], str]:
        return self.index.get

    def resolve(self, path: str | Path) -> str:
        """Display annotation for a file or directory path."""
        return self.resolver.resolve(self.relative_path(path))

    def on_index_updated(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self.scheduler.on_index_updated(callback)

    def notify(self, kind: str, path: str | Path, is_directory: bool = False) -> bool:
        return self.scheduler.notify(kind, self.relative_path(path), is_directory)

    async def initialize(self) -> bool:
        """Create or update the document and build the index."""
        created = not self.store.exists()
        ok = await self.force_refresh()
        if ok and created:
            logger.info("Created %s", self.store.path)
        return ok

    async def force_refresh(self) -> bool:
        ok = await self.scheduler.force_refresh()
        if not ok:
            # The scheduler cleared the index up front; fall back to the last good document
            self.index.rebuild(self.document)
        return ok

    async def set_comment(self, path: str | Path, comment: str) -> bool:
        """Set one directory's comment. Returns False if it was not persisted."""
        rel = self.relative_path(path)
        try:
            ok = await self.store.update_comment(rel, comment)
        except DocumentWriteError as e:
            logger.error("Comment for %s not saved: %s", rel, e)
            return False
        if not ok:
            return False

        self.load()
        # Let listeners hear about it through a regular cycle
        self.scheduler.notify("modified", self.store.filename)
        return True

    async def annotate(self, path: str | Path) -> str | None:
        """Generate a comment for one directory and store it.

        The document is only touched after the provider succeeds; provider
        errors propagate to the caller unchanged.
        """
        if self.comment_provider is None:
            raise RuntimeError("No comment provider configured")

        rel = self.relative_path(path)
        listing = list_directory(self.root / rel, self.config.exclude)
        comment = await self.comment_provider(rel, listing)
        if not comment:
            return None

        if self.document is None or self.document.find(rel) is None:
            await self.force_refresh()
        if not await self.set_comment(rel, comment):
            return None
        return comment

    async def annotate_missing(self) -> int:
        """Annotate every directory that still has an empty comment.

        Returns the number of comments stored. Provider errors propagate
        and leave the comments stored so far in place.
        """
        if self.comment_provider is None:
            raise RuntimeError("No comment provider configured")
        if self.document is None:
            await self.force_refresh()
        if self.document is None:
            return 0

        stored = 0
        for node in list(self.document.walk()):
            if node.comment:
                continue
            try:
                listing = list_directory(self.root / node.path, self.config.exclude)
            except OSError as e:
                logger.warning("Skipping %s: %s", node.path, e)
                continue
            comment = await self.comment_provider(node.path, listing)
            if comment and await self.set_comment(node.path, comment):
                stored += 1
        return stored

    # ------------------------------------------------------------------
    # Watching
    # ------------------------------------------------------------------

    def start_watching(self) -> bool:
        """Start the filesystem watcher. Returns False if auto refresh is off."""
        if not self.config.refresh.auto_refresh:
            logger.info("Auto refresh disabled, not watching %s", self.root)
            return False
        if self._watcher is None:
            self._watcher = DirectoryWatcher(self.root, self.scheduler)
        self._watcher.start()
        return True

    def stop_watching(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    async def close(self) -> None:
        self.stop_watching()
        await self.scheduler.close()

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    async def refresh_cycle(self) -> AnnotationDocument | None:
        """Scan, merge with the stored document, persist, rebuild the index."""
        if not self.root.is_dir():
            logger.warning("Workspace root %s is gone, skipping refresh", self.root)
            self.index.rebuild(self.document)
            return self.document

        async with self.store.locked():
            previous = self._load_or_recover()
            scanned = await scan_directories(self.root, self.config.exclude)
            merged = merge_documents(previous, scanned)
            # An identical file is left alone so our own write does not
            # keep re-triggering the watcher
            if self.store.save_if_changed(merged):
                logger.debug("Annotation document updated")
            self.document = merged
            self.index.rebuild(merged)
            self.resolver.page_map = read_manifest_pages(self.root)
        return merged

    def _load_or_recover(self) -> AnnotationDocument | None:
        # Only bad content is recovered from. DocumentReadError propagates and
        # fails the cycle, so a file we cannot read is never overwritten.
        try:
            return self.store.load()
        except DocumentCorruptError as e:
            backup = self.store.backup_corrupt() if self.config.document.backup_corrupt else None
            if backup is not None:
                logger.info("%s; reinitializing (backup at %s)", e, backup)
            else:
                logger.info("%s; reinitializing", e)
            return None

    def load(self) -> bool:
        """Build the index from the stored document without scanning.

        Returns False when there is no usable document.
        """
        try:
            document = self.store.load()
        except DocumentError as e:
            logger.warning("Index not loaded: %s", e)
            return False
        self.document = document
        self.index.rebuild(document)
        self.resolver.page_map = read_manifest_pages(self.root)
        return document is not None

    def relative_path(self, path: str | Path) -> str:
        """Normalize an absolute or root-relative path to the persisted form."""
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(self.root)
            except ValueError:
                raise ValueError(f"{path} is outside workspace {self.root}") from None
        return join_segments(split_path(p.as_posix()))
