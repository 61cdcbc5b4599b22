"""Model backends that turn a directory prompt into a short label."""

import logging
import os

from dirnotes_core.config.models import LLMSettings
from dirnotes_core.llm.backends import ClaudeLabeler, OllamaLabeler, OpenAILabeler, first_local_model
from dirnotes_core.llm.base import Completion, Labeler, LabelerError

logger = logging.getLogger(__name__)

_BACKENDS: dict[str, type[Labeler]] = {
    "anthropic": ClaudeLabeler,
    "openai": OpenAILabeler,
    "ollama": OllamaLabeler,
}

# Tried in order when provider is "auto": (provider, key variable, model)
_HOSTED_CANDIDATES = (
    ("anthropic", "ANTHROPIC_API_KEY", "claude-haiku-4-5-20251001"),
    ("openai", "OPENAI_API_KEY", "gpt-4o-mini"),
)


def resolve_settings(settings: LLMSettings) -> LLMSettings:
    """Replace provider "auto" with the first backend that is usable here.

    Hosted backends win when their key is exported; otherwise a running
    local Ollama server with at least one model. Raises ValueError when
    nothing is available.
    """
    if settings.provider != "auto":
        return settings

    for provider, key_env, model in _HOSTED_CANDIDATES:
        if os.environ.get(key_env):
            logger.debug("Auto-selected %s (%s is set)", provider, key_env)
            return settings.model_copy(
                update={"provider": provider, "api_key_env": key_env, "model": model}
            )

    model = first_local_model(settings.base_url)
    if model:
        logger.debug("Auto-selected local Ollama model %s", model)
        return settings.model_copy(update={"provider": "ollama", "model": model})

    raise ValueError(
        "No LLM backend found. Set llm.provider in dirnotes.yaml, export "
        "ANTHROPIC_API_KEY or OPENAI_API_KEY, or start Ollama."
    )


def create_labeler(settings: LLMSettings) -> Labeler:
    """Build the labeler for *settings*, reading the API key from the environment."""
    settings = resolve_settings(settings)
    api_key = None
    if settings.provider != "ollama":
        api_key = os.environ.get(settings.api_key_env)
        if not api_key:
            raise ValueError(f"Missing API key: set environment variable {settings.api_key_env!r}")
    return _BACKENDS[settings.provider](settings, api_key)


__all__ = [
    "ClaudeLabeler",
    "Completion",
    "Labeler",
    "LabelerError",
    "OllamaLabeler",
    "OpenAILabeler",
    "create_labeler",
    "resolve_settings",
]
