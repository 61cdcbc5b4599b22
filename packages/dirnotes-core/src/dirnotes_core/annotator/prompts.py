"""Prompt templates for directory comment generation."""

from __future__ import annotations

from dirnotes_core.tree.scanner import DirectoryListing

# Names shown to the model; longer listings are truncated
_MAX_LISTED = 30

SYSTEM_PROMPT_ZH = """\
你是一位精通各类编程语言和框架的目录结构专家，需要为代码目录生成简短的中文注释。

严格要求：
1. 必须是中文注释
2. 最多{max_chars}个汉字
3. 不带任何标点符号
4. 直接返回注释文本
5. 突出技术特点

目录命名规范参考：
- api/apis => 接口定义目录
- src => 源码主目录
- components => 组件目录
- utils => 工具函数库
- assets => 资源文件夹
- config => 配置目录
- test => 测试目录
- store/stores => 状态管理库
- hooks => 钩子函数库
- types => 类型定义库
- services => 服务层目录
- models => 数据模型层
- middleware => 中间件目录
- routes => 路由配置层
- views => 视图模板层
- pages => 页面组件层
- locales => 国际化配置
- migrations => 数据迁移层"""

SYSTEM_PROMPT_EN = """\
You label directories in a source tree with a short description.

Rules:
1. At most {max_chars} words
2. No punctuation
3. Return only the label text
4. Emphasize the technical role of the directory

Examples: src => main source code, utils => helper functions,
migrations => database migrations, locales => translations."""

USER_PROMPT_TEMPLATE = """\
Directory name: {name}
Full path: {path}
Files ({file_count}): {files}
Subdirectories ({dir_count}): {dirs}

Return the comment text only."""


def _preview(names: list[str]) -> str:
    shown = sorted(names)[:_MAX_LISTED]
    text = ", ".join(shown) if shown else "-"
    if len(names) > _MAX_LISTED:
        text += f", ... (+{len(names) - _MAX_LISTED})"
    return text


def build_system_prompt(language: str, max_chars: int) -> str:
    template = SYSTEM_PROMPT_ZH if language == "zh" else SYSTEM_PROMPT_EN
    return template.format(max_chars=max_chars)


def build_user_prompt(path: str, listing: DirectoryListing) -> str:
    name = path.rsplit("/", 1)[-1] if path else "."
    return USER_PROMPT_TEMPLATE.format(
        name=name,
        path=path or ".",
        file_count=len(listing.file_names),
        files=_preview(listing.file_names),
        dir_count=len(listing.subdirectory_names),
        dirs=_preview(listing.subdirectory_names),
    )
