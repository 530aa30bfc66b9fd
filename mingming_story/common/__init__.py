"""
Common utilities shared across Mingming Story modules.
"""

from .llm import JSON_RESPONSE_FORMAT, ChatResult, CompletionCallable, call_chat_completion

__all__ = ["ChatResult", "CompletionCallable", "JSON_RESPONSE_FORMAT", "call_chat_completion"]
