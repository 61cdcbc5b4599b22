"""Turn an LLM provider into a directory comment generator."""

from __future__ import annotations

import logging
import re

from dirnotes_core.annotator.prompts import build_system_prompt, build_user_prompt
from dirnotes_core.config.models import AnnotatorConfig
from dirnotes_core.llm.base import Labeler
from dirnotes_core.tree.scanner import DirectoryListing

logger = logging.getLogger(__name__)

_QUOTES_RE = re.compile(r"[\"'“”‘’「」`*_#]")
_PUNCT_RE = re.compile(r"[.。,，!！?？;；:：、]")
_WS_RE = re.compile(r"\s+")

# Fallback labels by directory name when the model returns nothing usable
DEFAULT_COMMENTS: dict[str, str] = {
    "api": "接口定义目录",
    "apis": "接口定义目录",
    "src": "源代码主目录",
    "components": "组件库目录",
    "utils": "工具函数集合",
    "assets": "静态资源文件",
    "config": "配置文件目录",
    "test": "测试用例目录",
    "tests": "测试用例目录",
    "docs": "文档资源目录",
    "styles": "样式文件目录",
    "models": "数据模型定义",
    "services": "服务层实现",
    "controllers": "控制器目录",
    "middleware": "中间件目录",
    "routes": "路由配置目录",
    "views": "视图模板目录",
    "public": "公共资源目录",
    "scripts": "脚本文件目录",
    "lib": "库文件目录",
    "vendor": "第三方依赖",
}


def clean_comment(raw: str, language: str = "zh", max_chars: int = 8) -> str:
    """Reduce a model reply to a single bare label."""
    lines = [line.strip() for line in raw.strip().splitlines() if line.strip()]
    if not lines:
        return ""
    text = _QUOTES_RE.sub("", lines[0])
    text = _PUNCT_RE.sub("", text)
    if language == "zh":
        text = _WS_RE.sub("", text)
        return text[:max_chars]
    words = _WS_RE.sub(" ", text).strip().split(" ")
    return " ".join(words[:max_chars])


class DirectoryAnnotator:
    """Comment provider backed by a labeler.

    Instances are awaitable callables ``(path, listing) -> str`` and can
    be handed to AnnotationWorkspace as its comment provider.
    """

    def __init__(self, labeler: Labeler, config: AnnotatorConfig | None = None) -> None:
        self.labeler = labeler
        self.config = config or AnnotatorConfig()

    async def __call__(self, path: str, listing: DirectoryListing) -> str:
        system = build_system_prompt(self.config.language, self.config.max_chars)
        user = build_user_prompt(path, listing)
        logger.debug("Requesting comment for %s", path or ".")

        reply = await self.labeler.label(system, user)
        comment = clean_comment(reply, self.config.language, self.config.max_chars)
        if not comment:
            name = path.rsplit("/", 1)[-1].lower()
            comment = DEFAULT_COMMENTS.get(name, "") if self.config.language == "zh" else ""
            logger.info("Empty reply for %s, using fallback %r", path, comment)
        return comment
