"""Tests for mingming_story.common.llm."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from mingming_story.common import JSON_RESPONSE_FORMAT, call_chat_completion


def _response(content):
    return {"choices": [{"message": {"content": content}}]}


class TestCallChatCompletion:
    """Test call_chat_completion() against a patched LiteLLM."""

    def test_payload_and_text(self):
        with patch("mingming_story.common.llm.completion", return_value=_response("  {}  ")) as mock:
            result = call_chat_completion(
                model="gpt-4o",
                messages=[{"role": "user", "content": "hi"}],
                temperature=0.7,
                response_format=JSON_RESPONSE_FORMAT,
                api_key="secret",
            )

        assert result.text == "{}"
        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.7
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["api_key"] == "secret"

    def test_optional_fields_omitted(self):
        with patch("mingming_story.common.llm.completion", return_value=_response("x")) as mock:
            call_chat_completion(model="m", messages=[])
        assert "temperature" not in mock.call_args.kwargs
        assert "response_format" not in mock.call_args.kwargs

    def test_none_content_is_empty_text(self):
        with patch("mingming_story.common.llm.completion", return_value=_response(None)):
            assert call_chat_completion(model="m", messages=[]).text == ""

    def test_unexpected_shape_raises(self):
        with patch("mingming_story.common.llm.completion", return_value={"choices": []}):
            with pytest.raises(RuntimeError, match="Unexpected LiteLLM response format"):
                call_chat_completion(model="m", messages=[])

    def test_usage_and_finish_reason(self):
        response = {
            "choices": [{"message": {"content": "{}"}, "finish_reason": "length"}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 30, "total_tokens": 42},
        }
        with patch("mingming_story.common.llm.completion", return_value=response):
            result = call_chat_completion(model="m", messages=[])

        assert result.finish_reason == "length"
        assert result.usage == {"prompt_tokens": 12, "completion_tokens": 30, "total_tokens": 42}

    def test_missing_usage(self):
        with patch("mingming_story.common.llm.completion", return_value=_response("x")):
            result = call_chat_completion(model="m", messages=[])
        assert result.usage == {}
        assert result.finish_reason is None
