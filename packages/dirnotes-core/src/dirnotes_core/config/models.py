from pydantic import BaseModel, Field
from typing import Literal

# Directory names that are never scanned, regardless of user patterns
DEFAULT_DENYLIST = ("node_modules", "dist", "build", ".git", "__pycache__", ".venv")


class ExcludeConfig(BaseModel):
    exclude_patterns: list[str] = Field(default_factory=list)
    show_hidden: bool = False
    denylist: list[str] = Field(default_factory=lambda: list(DEFAULT_DENYLIST))


class RefreshConfig(BaseModel):
    debounce_seconds: float = Field(default=0.5, gt=0)
    min_interval_seconds: float = Field(default=1.0, ge=0)
    timeout_seconds: float = Field(default=5.0, gt=0)
    auto_refresh: bool = True


class DocumentConfig(BaseModel):
    filename: str = "directory-config.json"
    backup_corrupt: bool = True


class LLMSettings(BaseModel):
    provider: Literal["anthropic", "openai", "ollama", "auto"] = "anthropic"
    model: str = "claude-haiku-4-5-20251001"
    api_key_env: str = "ANTHROPIC_API_KEY"
    max_tokens: int = Field(default=256, gt=0)
    timeout: int = Field(default=60, gt=0)
    base_url: str | None = None


class AnnotatorConfig(BaseModel):
    enabled: bool = False
    max_chars: int = Field(default=8, gt=0)
    language: Literal["zh", "en"] = "zh"


class DirnotesConfig(BaseModel):
    exclude: ExcludeConfig = Field(default_factory=ExcludeConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    annotator: AnnotatorConfig = Field(default_factory=AnnotatorConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
