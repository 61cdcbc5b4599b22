"""Resolve the display annotation for a path from all comment sources."""

from __future__ import annotations

import json
import logging
import posixpath
import re
from pathlib import Path

from dirnotes_core.index.annotation_index import AnnotationIndex
from dirnotes_core.tree.models import join_segments, split_path

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "pages.json"

_VUE_EXT_RE = re.compile(r"\.vue$")


def _page_title(page: object) -> tuple[str, str] | None:
    if not isinstance(page, dict):
        return None
    path = page.get("path")
    style = page.get("style")
    if not path or not isinstance(path, str) or not isinstance(style, dict):
        return None
    title = style.get("navigationBarTitleText")
    if not title or not isinstance(title, str):
        return None
    return path, title


def read_manifest_pages(root: str | Path) -> dict[str, str] | None:
    """Build a page path -> title map from a uni-app ``pages.json``.

    Main-package pages are registered first, then every sub-package page
    prefixed with its ``root``. Returns None when the manifest is missing
    or cannot be parsed; this function never raises.
    """
    manifest = Path(root) / MANIFEST_FILENAME
    if not manifest.is_file():
        return None

    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug("Ignoring unreadable %s: %s", manifest, e)
        return None
    if not isinstance(data, dict):
        return None

    page_map: dict[str, str] = {}

    pages = data.get("pages")
    if isinstance(pages, list):
        for page in pages:
            entry = _page_title(page)
            if entry:
                page_map[entry[0]] = entry[1]

    sub_packages = data.get("subPackages")
    if isinstance(sub_packages, list):
        for sub in sub_packages:
            if not isinstance(sub, dict) or not isinstance(sub.get("root"), str):
                continue
            sub_pages = sub.get("pages")
            if not isinstance(sub_pages, list):
                continue
            for page in sub_pages:
                entry = _page_title(page)
                if entry:
                    page_map[posixpath.join(sub["root"], entry[0])] = entry[1]

    return page_map


class CommentResolver:
    """Looks up an annotation in the index, then in the manifest page map."""

    def __init__(
        self,
        index: AnnotationIndex,
        page_map: dict[str, str] | None = None,
    ) -> None:
        self.index = index
        self.page_map = page_map

    def resolve(self, relative_path: str) -> str:
        normalized = join_segments(split_path(relative_path))
        comment = self.index.get(normalized)
        if comment:
            return comment
        if not self.page_map:
            return ""

        without_ext = _VUE_EXT_RE.sub("", normalized)
        for page_path, title in self.page_map.items():
            if page_path in without_ext:
                return title
        return ""
