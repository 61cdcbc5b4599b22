"""Labeler interface: one prompt in, one short reply out."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from dirnotes_core.config.models import LLMSettings

logger = logging.getLogger(__name__)

# Low so the same tree gets the same labels run after run
LABEL_TEMPERATURE = 0.2


class LabelerError(Exception):
    """A backend request failed before producing a reply."""

    def __init__(self, backend: str, cause: Exception, retryable: bool = False) -> None:
        self.backend = backend
        self.retryable = retryable
        super().__init__(f"{backend} labeling failed: {cause}")
        self.__cause__ = cause


@dataclass(frozen=True)
class Completion:
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


class Labeler(ABC):
    """Base class for the model backends behind directory comments.

    Subclasses implement :meth:`_complete` and list the exceptions their
    client library raises for transport and API failures in
    ``transport_errors``; :meth:`label` wraps those in LabelerError.
    An empty reply is not an error here, the annotator decides what to
    do with it.
    """

    name = "labeler"
    transport_errors: tuple[type[Exception], ...] = ()

    def __init__(self, settings: LLMSettings, api_key: str | None = None) -> None:
        self.settings = settings
        self.api_key = api_key

    async def label(self, system: str, prompt: str) -> str:
        try:
            completion = await self._complete(system, prompt)
        except self.transport_errors as e:
            raise LabelerError(self.name, e, retryable=self.is_retryable(e)) from e
        logger.debug(
            "%s reply: %d prompt tokens, %d completion tokens",
            self.name,
            completion.input_tokens,
            completion.output_tokens,
        )
        return completion.text.strip()

    def is_retryable(self, error: Exception) -> bool:
        return False

    @abstractmethod
    async def _complete(self, system: str, prompt: str) -> Completion: ...
