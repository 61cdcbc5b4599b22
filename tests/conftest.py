"""Shared test fixtures for dirnotes."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from dirnotes_core.config.models import DirnotesConfig, RefreshConfig
from dirnotes_core.llm.base import Labeler
from dirnotes_core.tree.models import AnnotationDocument, DirectoryNode


@pytest.fixture
def sample_root(tmp_path: Path) -> Path:
    """A small project tree with nested, hidden and denylisted directories."""
    root = tmp_path / "project"
    (root / "src" / "api").mkdir(parents=True)
    (root / "src" / "utils").mkdir()
    (root / "docs").mkdir()
    (root / "node_modules" / "left-pad").mkdir(parents=True)
    (root / ".git" / "objects").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hi')")
    (root / "src" / "api" / "client.py").write_text("")
    (root / "README.md").write_text("# project")
    return root


@pytest.fixture
def fast_config() -> DirnotesConfig:
    """Config with short timings so scheduler tests finish quickly."""
    return DirnotesConfig(
        refresh=RefreshConfig(
            debounce_seconds=0.05,
            min_interval_seconds=0.0,
            timeout_seconds=2.0,
        )
    )


@pytest.fixture
def annotated_document() -> AnnotationDocument:
    return AnnotationDocument(
        directories=[
            DirectoryNode(
                path="src",
                comment="源代码主目录",
                children=[
                    DirectoryNode(path="src/api", comment="接口定义目录"),
                    DirectoryNode(path="src/utils", comment=""),
                ],
            ),
            DirectoryNode(path="docs", comment="文档"),
        ]
    )


@pytest.fixture
def mock_labeler():
    labeler = MagicMock(spec=Labeler)
    labeler.name = "anthropic"
    labeler.label = AsyncMock(return_value="接口定义目录")
    return labeler
