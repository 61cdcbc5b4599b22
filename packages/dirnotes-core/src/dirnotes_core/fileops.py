"""File and folder operations that keep the annotation document in step."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirnotes_core.workspace import AnnotationWorkspace

logger = logging.getLogger(__name__)


class FileOperationError(Exception):
    """A file operation could not be carried out."""


@dataclass
class ClipboardSession:
    """What was last cut or copied, scoped to one FileOperations instance."""

    item: Path | None = None
    is_cut: bool = False

    def set(self, item: Path, is_cut: bool) -> None:
        self.item = item
        self.is_cut = is_cut

    def clear(self) -> None:
        self.item = None
        self.is_cut = False


class FileOperations:
    """Create, rename, delete, cut/copy/paste inside a workspace.

    Every structural change ends with a forced refresh, so the document
    reflects the new tree before the call returns.
    """

    def __init__(self, workspace: AnnotationWorkspace) -> None:
        self.workspace = workspace
        self.clipboard = ClipboardSession()

    def _resolve(self, path: str | Path) -> Path:
        p = Path(path)
        if not p.is_absolute():
            p = self.workspace.root / p
        p = p.resolve()
        if p != self.workspace.root and not p.is_relative_to(self.workspace.root):
            raise FileOperationError(f"{path} is outside the workspace")
        return p

    async def new_file(self, parent: str | Path, name: str) -> Path:
        target = self._resolve(parent) / name
        if target.exists():
            raise FileOperationError(f"{target.name} already exists")
        try:
            target.touch(exist_ok=False)
        except OSError as e:
            raise FileOperationError(f"Failed to create file {target}: {e}") from e
        # Files are not part of the document; no refresh needed
        return target

    async def new_folder(self, parent: str | Path, name: str) -> Path:
        target = self._resolve(parent) / name
        if target.exists():
            raise FileOperationError(f"{target.name} already exists")
        try:
            target.mkdir()
        except OSError as e:
            raise FileOperationError(f"Failed to create folder {target}: {e}") from e
        await self.workspace.force_refresh()
        return target

    async def rename(self, path: str | Path, new_name: str) -> Path:
        source = self._resolve(path)
        if new_name == source.name:
            return source
        target = source.with_name(new_name)
        if target.exists():
            raise FileOperationError(f"{new_name} already exists")
        try:
            source.rename(target)
        except OSError as e:
            raise FileOperationError(f"Failed to rename {source}: {e}") from e
        await self.workspace.force_refresh()
        return target

    async def delete(self, path: str | Path) -> None:
        target = self._resolve(path)
        if target == self.workspace.root:
            raise FileOperationError("Refusing to delete the workspace root")
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as e:
            raise FileOperationError(f"Failed to delete {target}: {e}") from e
        await self.workspace.force_refresh()

    def cut(self, path: str | Path) -> None:
        self.clipboard.set(self._resolve(path), is_cut=True)

    def copy(self, path: str | Path) -> None:
        self.clipboard.set(self._resolve(path), is_cut=False)

    async def paste(self, target_dir: str | Path, replace: bool = False) -> Path | None:
        """Paste the clipboard item into *target_dir*.

        Returns the new path, or None when the clipboard is empty. An
        existing entry of the same name is only overwritten with *replace*.
        """
        source = self.clipboard.item
        if source is None:
            return None
        destination = self._resolve(target_dir) / source.name
        is_cut = self.clipboard.is_cut
        if destination == source:
            raise FileOperationError(f"{source.name} is already in {destination.parent}")

        if destination.exists():
            if not replace:
                raise FileOperationError(f"{destination.name} already exists")
            if destination.is_dir() and not destination.is_symlink():
                shutil.rmtree(destination)
            else:
                destination.unlink()

        try:
            if is_cut:
                shutil.move(str(source), str(destination))
            elif source.is_dir():
                shutil.copytree(source, destination)
            else:
                shutil.copy2(source, destination)
        except OSError as e:
            action = "move" if is_cut else "copy"
            raise FileOperationError(f"Failed to {action} {source}: {e}") from e

        if is_cut:
            self.clipboard.clear()
        logger.debug("Pasted %s -> %s", source, destination)
        await self.workspace.force_refresh()
        return destination
