"""
Chat completion helper used by the story-text generator.

Wraps LiteLLM's ``completion`` so callers deal with a single ``ChatResult``
regardless of provider, and so tests can swap the whole call for a fake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from litellm import completion

logger = logging.getLogger(__name__)

ChatMessage = Mapping[str, Any]

# Asks OpenAI-compatible providers for a bare JSON object instead of prose.
JSON_RESPONSE_FORMAT: Mapping[str, str] = {"type": "json_object"}


@dataclass
class ChatResult:
    """Text of the first choice plus the untouched provider response."""

    text: str
    raw: Any
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


CompletionCallable = Callable[..., ChatResult]


def _field(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _first_choice(response: Any) -> Mapping[str, Any]:
    try:
        choice = response["choices"][0]
        choice["message"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM response format.") from exc
    return choice


def _usage_counts(response: Any) -> dict[str, int]:
    usage = _field(response, "usage")
    if usage is None:
        return {}
    counts: dict[str, int] = {}
    for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
        value = _field(usage, key)
        if isinstance(value, int):
            counts[key] = value
    return counts


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    response_format: Mapping[str, Any] | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Send ``messages`` to ``model`` and return the first choice's text.

    Only the options that were given are forwarded. A choice whose content is
    ``None`` yields an empty ``text``; deciding what that means is up to the
    caller.
    """
    options: dict[str, Any] = dict(extra_kwargs)
    for name, value in (
        ("temperature", temperature),
        ("response_format", dict(response_format) if response_format else None),
        ("api_key", api_key),
    ):
        if value is not None:
            options[name] = value

    logger.debug("Requesting chat completion from %s (%d messages).", model, len(messages))
    response = completion(model=model, messages=list(messages), **options)

    choice = _first_choice(response)
    content = choice["message"]["content"]
    result = ChatResult(
        text=str(content).strip() if content is not None else "",
        raw=response,
        finish_reason=_field(choice, "finish_reason"),
        usage=_usage_counts(response),
    )
    if result.finish_reason == "length":
        logger.warning("Chat completion from %s was cut off at the token limit.", model)
    return result
