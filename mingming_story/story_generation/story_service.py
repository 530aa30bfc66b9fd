"""
Service layer for producing raw story JSON via LiteLLM-compatible models.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from mingming_story.common import (
    JSON_RESPONSE_FORMAT,
    ChatResult,
    CompletionCallable,
    call_chat_completion,
)

from .prompting import StoryPrompt

logger = logging.getLogger(__name__)

DEFAULT_STORY_MODEL = "gpt-4o"
STORY_TEMPERATURE = 0.7


class StoryGenerationError(RuntimeError):
    """Raised when the upstream chat model call fails."""


class StoryTextGenerator:
    """
    Sends a built story prompt to the chat model in JSON mode and returns the raw text.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("MINGMING_STORY_MODEL")
            or os.getenv("OPENAI_STORY_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_STORY_MODEL
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    def generate_story_text(
        self,
        prompt: StoryPrompt,
        *,
        temperature: float = STORY_TEMPERATURE,
        **response_kwargs: Any,
    ) -> str:
        """
        Invoke the configured LLM and return its (unvalidated) JSON text.

        An empty completion is reported as ``"{}"`` so the normalizer can fill
        in every panel.
        """
        try:
            result: ChatResult = self._completion_fn(
                model=self._model,
                messages=prompt.as_messages(),
                temperature=temperature,
                response_format=JSON_RESPONSE_FORMAT,
                api_key=self._api_key,
                **response_kwargs,
            )
        except Exception as exc:
            raise StoryGenerationError(f"Story generation with {self._model} failed.") from exc

        if result.usage:
            logger.info(
                "Story text from %s used %s tokens.",
                self._model,
                result.usage.get("total_tokens", "?"),
            )

        if not result.text:
            logger.warning("Model %s returned no content; using an empty story.", self._model)
            return "{}"

        return result.text
