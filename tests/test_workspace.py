"""End-to-end tests for AnnotationWorkspace."""

from __future__ import annotations

import asyncio
import json
import os
import shutil
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dirnotes_core.config.models import DirnotesConfig, RefreshConfig
from dirnotes_core.document import DocumentReadError
from dirnotes_core.refresh import SchedulerState
from dirnotes_core.tree import scan_directories
from dirnotes_core.workspace import AnnotationWorkspace


@pytest.fixture
def src_root(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    (root / "src" / "components").mkdir(parents=True)
    return root


def _read(ws: AnnotationWorkspace) -> dict:
    return json.loads(ws.store.path.read_text(encoding="utf-8"))


# ── Documented scenarios ────────────────────────────────────────────


class TestScenarios:
    @pytest.mark.asyncio
    async def test_first_scan_then_comment_survives_rescan(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        assert await ws.initialize() is True
        assert _read(ws) == {
            "version": "1.0",
            "directories": [
                {
                    "path": "src",
                    "comment": "",
                    "children": [{"path": "src/components", "comment": "", "children": []}],
                }
            ],
        }

        assert await ws.set_comment("src", "源码主目录") is True
        assert await ws.force_refresh() is True

        doc = ws.store.load()
        assert doc.find("src").comment == "源码主目录"
        assert doc.find("src/components").comment == ""
        assert ws.get_index()("src") == "源码主目录"
        await ws.close()

    @pytest.mark.asyncio
    async def test_deleted_child_dropped_parent_comment_kept(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码主目录")

        shutil.rmtree(src_root / "src" / "components")
        await ws.force_refresh()

        src = ws.store.load().find("src")
        assert src.children == []
        assert src.comment == "源码主目录"
        await ws.close()


# ── Refresh cycle ───────────────────────────────────────────────────


class TestRefreshCycle:
    @pytest.mark.asyncio
    async def test_excluded_directories_not_persisted(self, sample_root, fast_config):
        ws = AnnotationWorkspace(sample_root, fast_config)
        await ws.initialize()
        paths = {node.path for node in ws.store.load().walk()}
        assert paths == {"src", "src/api", "src/utils", "docs"}
        await ws.close()

    @pytest.mark.asyncio
    async def test_unchanged_tree_is_not_rewritten(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        inode = ws.store.path.stat().st_ino

        await ws.force_refresh()
        assert ws.store.path.stat().st_ino == inode

        (src_root / "lib").mkdir()
        await ws.force_refresh()
        assert ws.store.path.stat().st_ino != inode
        await ws.close()

    @pytest.mark.asyncio
    async def test_new_directory_added_with_empty_comment(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码")
        (src_root / "src" / "hooks").mkdir()
        await ws.force_refresh()
        doc = ws.store.load()
        assert doc.find("src/hooks").comment == ""
        assert doc.find("src").comment == "源码"
        await ws.close()

    @pytest.mark.asyncio
    async def test_corrupt_document_is_backed_up_and_rebuilt(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        ws.store.path.write_text("{ broken", encoding="utf-8")

        assert await ws.initialize() is True
        assert ws.store.backup_path.read_text(encoding="utf-8") == "{ broken"
        assert ws.store.load().find("src/components") is not None
        await ws.close()

    @pytest.mark.asyncio
    async def test_legacy_backslash_paths_normalized(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        ws.store.path.write_text(
            json.dumps(
                {
                    "version": "1.0",
                    "directories": [
                        {
                            "path": "src",
                            "comment": "源码",
                            "children": [
                                {"path": "src\\components", "comment": "组件", "children": []}
                            ],
                        }
                    ],
                },
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        await ws.initialize()
        raw = ws.store.path.read_text(encoding="utf-8")
        assert "src/components" in raw
        assert "\\\\" not in raw
        assert ws.get_index()("src/components") == "组件"
        await ws.close()

    @pytest.mark.asyncio
    async def test_unreadable_document_is_never_overwritten(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码主目录")
        before = ws.store.path.read_text(encoding="utf-8")

        denied = DocumentReadError(ws.store.path, PermissionError("Permission denied"))
        with patch.object(ws.store, "load", side_effect=denied), patch(
            "dirnotes_core.document.store.shutil.copyfile",
            side_effect=PermissionError("Permission denied"),
        ):
            with pytest.raises(DocumentReadError):
                await ws.refresh_cycle()
            assert await ws.force_refresh() is False

        assert ws.store.path.read_text(encoding="utf-8") == before
        assert not ws.store.backup_path.exists()
        assert ws.get_index()("src") == "源码主目录"
        assert ws.store.load().find("src").comment == "源码主目录"
        await ws.close()

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name == "nt", reason="backslash is not allowed in Windows names")
    async def test_backslash_directory_keeps_its_own_path(self, tmp_path, fast_config):
        root = tmp_path / "root"
        (root / "a\\b").mkdir(parents=True)
        (root / "a" / "b").mkdir(parents=True)
        (root / "a\\b" / "only_here.txt").write_text("")
        provider = AsyncMock(return_value="奇怪目录")
        ws = AnnotationWorkspace(root, fast_config, comment_provider=provider)
        await ws.initialize()

        paths = [node.path for node in ws.store.load().walk()]
        assert sorted(paths) == ["a", "a/b", "a\\b"]

        assert await ws.annotate("a\\b") == "奇怪目录"
        _, listing = provider.await_args.args
        assert listing.file_names == ["only_here.txt"]
        doc = ws.store.load()
        assert doc.find("a\\b").comment == "奇怪目录"
        assert doc.find("a/b").comment == ""
        await ws.close()

    @pytest.mark.asyncio
    async def test_missing_root_keeps_previous_state(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码")
        shutil.rmtree(src_root)

        assert await ws.force_refresh() is True
        assert ws.document.find("src").comment == "源码"
        await ws.close()

    @pytest.mark.asyncio
    async def test_timed_out_refresh_keeps_previous_index(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码")
        before = ws.store.path.read_text(encoding="utf-8")

        async def slow_scan(*args, **kwargs):
            await asyncio.sleep(10)

        ws.scheduler.config = RefreshConfig(debounce_seconds=0.05, timeout_seconds=0.1)
        with patch("dirnotes_core.workspace.scan_directories", slow_scan):
            assert await ws.force_refresh() is False

        assert ws.get_index()("src") == "源码"
        assert ws.store.path.read_text(encoding="utf-8") == before
        await ws.close()

    @pytest.mark.asyncio
    async def test_listeners_notified(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        listener = MagicMock()
        ws.on_index_updated(listener)
        await ws.initialize()
        listener.assert_called_once()
        await ws.close()

    @pytest.mark.asyncio
    async def test_save_failure_reported(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        with patch("dirnotes_core.document.store.os.replace", side_effect=OSError("read-only")):
            assert await ws.initialize() is False
        assert not ws.store.exists()
        await ws.close()


# ── Comments ────────────────────────────────────────────────────────


class TestSetComment:
    @pytest.mark.asyncio
    async def test_absolute_path_accepted(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        assert await ws.set_comment(src_root / "src" / "components", "组件库") is True
        assert ws.resolve(src_root / "src" / "components") == "组件库"
        await ws.close()

    @pytest.mark.asyncio
    async def test_unknown_directory_returns_false(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        assert await ws.set_comment("nope", "x") is False
        await ws.close()

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        with patch("dirnotes_core.document.store.os.replace", side_effect=OSError("disk full")):
            assert await ws.set_comment("src", "源码") is False
        assert ws.store.load().find("src").comment == ""
        await ws.close()

    @pytest.mark.asyncio
    async def test_path_outside_root_rejected(self, src_root, tmp_path, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        with pytest.raises(ValueError, match="outside"):
            await ws.set_comment(tmp_path / "elsewhere", "x")

    @pytest.mark.asyncio
    async def test_comment_during_running_cycle_applied_after_its_save(
        self, src_root, fast_config
    ):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        scanning = asyncio.Event()

        async def slow_scan(*args, **kwargs):
            scanning.set()
            await asyncio.sleep(0.2)
            return await scan_directories(*args, **kwargs)

        with patch("dirnotes_core.workspace.scan_directories", slow_scan):
            refresh = asyncio.create_task(ws.force_refresh())
            await scanning.wait()
            comment = asyncio.create_task(ws.set_comment("src", "源码主目录"))
            await asyncio.sleep(0.05)
            assert not comment.done()

            assert await refresh is True
            assert await comment is True

        assert ws.store.load().find("src").comment == "源码主目录"
        assert ws.get_index()("src") == "源码主目录"
        await ws.close()

    @pytest.mark.asyncio
    async def test_comment_survives_debounced_cycle(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config)
        await ws.initialize()
        await ws.set_comment("src", "源码")
        assert ws.scheduler.state is SchedulerState.COALESCING

        await asyncio.sleep(0.3)
        assert ws.scheduler.cycles_completed == 2
        assert ws.store.load().find("src").comment == "源码"
        await ws.close()


class TestLoad:
    def test_load_without_document(self, src_root):
        ws = AnnotationWorkspace(src_root)
        assert ws.load() is False
        assert ws.resolve("src") == ""

    def test_load_existing_document(self, src_root, annotated_document):
        ws = AnnotationWorkspace(src_root)
        ws.store.save(annotated_document)
        assert ws.load() is True
        assert ws.resolve("src/api") == "接口定义目录"

    def test_load_picks_up_manifest(self, src_root, annotated_document):
        (src_root / "pages.json").write_text(
            json.dumps({"pages": [{"path": "pages/home", "style": {"navigationBarTitleText": "主页"}}]}),
            encoding="utf-8",
        )
        ws = AnnotationWorkspace(src_root)
        ws.store.save(annotated_document)
        ws.load()
        assert ws.resolve("pages/home.vue") == "主页"

    def test_load_corrupt_document(self, src_root):
        ws = AnnotationWorkspace(src_root)
        ws.store.path.write_text("nope", encoding="utf-8")
        assert ws.load() is False


# ── Comment provider ────────────────────────────────────────────────


class TestAnnotate:
    @pytest.mark.asyncio
    async def test_provider_result_stored(self, src_root, fast_config):
        provider = AsyncMock(return_value="组件目录")
        ws = AnnotationWorkspace(src_root, fast_config, comment_provider=provider)
        await ws.initialize()

        assert await ws.annotate("src/components") == "组件目录"
        assert ws.store.load().find("src/components").comment == "组件目录"
        path, listing = provider.await_args.args
        assert path == "src/components"
        assert listing.file_names == []
        await ws.close()

    @pytest.mark.asyncio
    async def test_new_directory_refreshed_before_storing(self, src_root, fast_config):
        provider = AsyncMock(return_value="新目录")
        ws = AnnotationWorkspace(src_root, fast_config, comment_provider=provider)
        await ws.initialize()
        (src_root / "fresh").mkdir()
        assert await ws.annotate("fresh") == "新目录"
        assert ws.store.load().find("fresh").comment == "新目录"
        await ws.close()

    @pytest.mark.asyncio
    async def test_provider_failure_leaves_document_untouched(self, src_root, fast_config):
        provider = AsyncMock(side_effect=RuntimeError("api down"))
        ws = AnnotationWorkspace(src_root, fast_config, comment_provider=provider)
        await ws.initialize()
        before = ws.store.path.read_text(encoding="utf-8")

        with pytest.raises(RuntimeError, match="api down"):
            await ws.annotate("src")
        assert ws.store.path.read_text(encoding="utf-8") == before
        await ws.close()

    @pytest.mark.asyncio
    async def test_empty_result_not_stored(self, src_root, fast_config):
        ws = AnnotationWorkspace(src_root, fast_config, comment_provider=AsyncMock(return_value=""))
        await ws.initialize()
        assert await ws.annotate("src") is None
        await ws.close()

    @pytest.mark.asyncio
    async def test_without_provider(self, src_root):
        ws = AnnotationWorkspace(src_root)
        with pytest.raises(RuntimeError, match="No comment provider"):
            await ws.annotate("src")

    @pytest.mark.asyncio
    async def test_annotate_missing_fills_only_empty(self, src_root, fast_config):
        provider = AsyncMock(return_value="自动注释")
        ws = AnnotationWorkspace(src_root, fast_config, comment_provider=provider)
        await ws.initialize()
        await ws.set_comment("src", "手写注释")

        assert await ws.annotate_missing() == 1
        doc = ws.store.load()
        assert doc.find("src").comment == "手写注释"
        assert doc.find("src/components").comment == "自动注释"
        provider.assert_awaited_once()
        await ws.close()


class TestWatching:
    @pytest.mark.asyncio
    async def test_auto_refresh_disabled(self, src_root):
        cfg = DirnotesConfig(refresh=RefreshConfig(auto_refresh=False))
        ws = AnnotationWorkspace(src_root, cfg)
        assert ws.start_watching() is False
        await ws.close()
