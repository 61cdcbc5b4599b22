"""Concrete labelers for Anthropic, OpenAI-compatible and Ollama endpoints."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import anthropic
import httpx
import openai

from dirnotes_core.config.models import LLMSettings
from dirnotes_core.llm.base import LABEL_TEMPERATURE, Completion, Labeler

logger = logging.getLogger(__name__)

OLLAMA_URL = "http://localhost:11434"
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


class ClaudeLabeler(Labeler):
    name = "anthropic"
    transport_errors = (anthropic.APIError,)

    def __init__(self, settings: LLMSettings, api_key: str | None = None) -> None:
        super().__init__(settings, api_key)
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=settings.timeout, max_retries=2
        )

    def is_retryable(self, error: Exception) -> bool:
        return isinstance(error, (anthropic.RateLimitError, anthropic.APITimeoutError))

    async def _complete(self, system: str, prompt: str) -> Completion:
        message = await self._client.messages.create(
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
            temperature=LABEL_TEMPERATURE,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in message.content if block.type == "text")
        return Completion(text, message.usage.input_tokens, message.usage.output_tokens)


class OpenAILabeler(Labeler):
    """Chat completions; ``base_url`` points it at any compatible server."""

    name = "openai"
    transport_errors = (openai.APIError,)

    def __init__(self, settings: LLMSettings, api_key: str | None = None) -> None:
        super().__init__(settings, api_key)
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=2,
        )

    def is_retryable(self, error: Exception) -> bool:
        return isinstance(error, (openai.RateLimitError, openai.APITimeoutError))

    async def _complete(self, system: str, prompt: str) -> Completion:
        response = await self._client.chat.completions.create(
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
            temperature=LABEL_TEMPERATURE,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        if not response.choices:
            return Completion("")
        usage = response.usage
        return Completion(
            response.choices[0].message.content or "",
            usage.prompt_tokens if usage else 0,
            usage.completion_tokens if usage else 0,
        )


def ollama_base_url(url: str | None) -> str:
    """Validate an Ollama server URL; remote hosts are allowed but logged."""
    url = (url or OLLAMA_URL).rstrip("/")
    if "\r" in url or "\n" in url:
        raise ValueError("Ollama base_url must not contain line breaks")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Ollama base_url must be http(s), got {parsed.scheme or 'none'}")
    if parsed.hostname not in _LOCAL_HOSTS:
        logger.warning("Sending directory listings to remote Ollama host %s", parsed.hostname)
    return url


def first_local_model(base_url: str | None = None) -> str | None:
    """Name of the first model a reachable Ollama server has pulled, if any."""
    try:
        resp = httpx.get(f"{ollama_base_url(base_url)}/api/tags", timeout=2.0)
        resp.raise_for_status()
    except httpx.HTTPError:
        return None
    models = resp.json().get("models") or []
    return models[0]["name"] if models else None


class OllamaLabeler(Labeler):
    name = "ollama"
    transport_errors = (httpx.HTTPError,)

    def __init__(self, settings: LLMSettings, api_key: str | None = None) -> None:
        super().__init__(settings, api_key)
        self.base_url = ollama_base_url(settings.base_url)

    def is_retryable(self, error: Exception) -> bool:
        if isinstance(error, httpx.TimeoutException):
            return True
        return isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429

    async def _complete(self, system: str, prompt: str) -> Completion:
        payload = {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "options": {"num_predict": self.settings.max_tokens, "temperature": LABEL_TEMPERATURE},
            "stream": False,
        }
        async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
            resp = await client.post(f"{self.base_url}/api/chat", json=payload)
            resp.raise_for_status()
            data = resp.json()
        return Completion(
            (data.get("message") or {}).get("content", ""),
            data.get("prompt_eval_count", 0),
            data.get("eval_count", 0),
        )
