"""Tests for the annotation index and the comment resolver."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from dirnotes_core.index import AnnotationIndex, CommentResolver, read_manifest_pages
from dirnotes_core.tree.models import AnnotationDocument


class TestAnnotationIndex:
    def test_only_non_empty_comments(self, annotated_document):
        index = AnnotationIndex()
        index.rebuild(annotated_document)
        assert dict(index.items()) == {
            "src": "源代码主目录",
            "src/api": "接口定义目录",
            "docs": "文档",
        }
        assert len(index) == 3
        assert "src/utils" not in index

    def test_get_normalizes_separators(self, annotated_document):
        index = AnnotationIndex()
        index.rebuild(annotated_document)
        assert index.get("./src/api/") == "接口定义目录"

    def test_missing_path_is_empty_string(self):
        assert AnnotationIndex().get("anything") == ""

    def test_rebuild_replaces_everything(self, annotated_document):
        index = AnnotationIndex()
        index.rebuild(annotated_document)
        index.rebuild(AnnotationDocument())
        assert len(index) == 0

    def test_rebuild_with_none_and_clear(self, annotated_document):
        index = AnnotationIndex()
        index.rebuild(annotated_document)
        index.clear()
        assert len(index) == 0
        index.rebuild(annotated_document)
        index.rebuild(None)
        assert index.get("src") == ""


def _write_manifest(root: Path, data: object) -> None:
    (root / "pages.json").write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


class TestReadManifestPages:
    def test_main_and_sub_packages(self, tmp_path: Path):
        _write_manifest(
            tmp_path,
            {
                "pages": [
                    {"path": "pages/index/index", "style": {"navigationBarTitleText": "首页"}},
                    {"path": "pages/about/about", "style": {}},
                ],
                "subPackages": [
                    {
                        "root": "pkgA",
                        "pages": [
                            {"path": "pages/list", "style": {"navigationBarTitleText": "列表"}}
                        ],
                    }
                ],
            },
        )
        assert read_manifest_pages(tmp_path) == {
            "pages/index/index": "首页",
            "pkgA/pages/list": "列表",
        }

    def test_missing_manifest(self, tmp_path: Path):
        assert read_manifest_pages(tmp_path) is None

    def test_invalid_manifest_never_raises(self, tmp_path: Path):
        (tmp_path / "pages.json").write_text("{ nope", encoding="utf-8")
        assert read_manifest_pages(tmp_path) is None

    def test_non_object_manifest(self, tmp_path: Path):
        _write_manifest(tmp_path, ["pages"])
        assert read_manifest_pages(tmp_path) is None

    def test_malformed_entries_skipped(self, tmp_path: Path):
        _write_manifest(
            tmp_path,
            {
                "pages": ["oops", {"path": 3}, {"path": "p/a", "style": {"navigationBarTitleText": "A"}}],
                "subPackages": [{"pages": []}, "bad"],
            },
        )
        assert read_manifest_pages(tmp_path) == {"p/a": "A"}


class TestCommentResolver:
    def test_index_first(self, annotated_document):
        index = AnnotationIndex()
        index.rebuild(annotated_document)
        resolver = CommentResolver(index, {"src": "from manifest"})
        assert resolver.resolve("src") == "源代码主目录"

    def test_manifest_substring_match_without_extension(self):
        resolver = CommentResolver(AnnotationIndex(), {"pages/index/index": "首页"})
        assert resolver.resolve("pages/index/index.vue") == "首页"

    def test_manifest_declaration_order_wins(self):
        resolver = CommentResolver(
            AnnotationIndex(),
            {"pages/user": "用户", "pages/user/profile": "资料"},
        )
        assert resolver.resolve("pages/user/profile.vue") == "用户"

    def test_no_match(self):
        resolver = CommentResolver(AnnotationIndex(), {"pages/x": "X"})
        assert resolver.resolve("src/main.py") == ""
        assert CommentResolver(AnnotationIndex()).resolve("src") == ""

    @pytest.mark.skipif(os.sep != "\\", reason="backslash separates only on Windows")
    def test_backslash_input(self):
        resolver = CommentResolver(AnnotationIndex(), {"pages/index/index": "首页"})
        assert resolver.resolve("pages\\index\\index.vue") == "首页"
