"""AI-assisted directory annotation."""

from dirnotes_core.annotator.annotator import DirectoryAnnotator, clean_comment
from dirnotes_core.annotator.prompts import build_system_prompt, build_user_prompt

__all__ = [
    "DirectoryAnnotator",
    "build_system_prompt",
    "build_user_prompt",
    "clean_comment",
]
