from .loader import load_config
from .models import (
    DEFAULT_DENYLIST,
    AnnotatorConfig,
    DirnotesConfig,
    DocumentConfig,
    ExcludeConfig,
    LLMSettings,
    RefreshConfig,
)

__all__ = [
    "DEFAULT_DENYLIST",
    "AnnotatorConfig",
    "DirnotesConfig",
    "DocumentConfig",
    "ExcludeConfig",
    "LLMSettings",
    "RefreshConfig",
    "load_config",
]
