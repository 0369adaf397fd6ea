"""Tests for blogforge.providers.anthropic_fallback."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from blogforge.errors import TransportError
from blogforge.providers.anthropic_fallback import AnthropicChatProvider
from blogforge.providers.base import ChatMessage, ChatRole, FinishReason, GenerationOptions

MESSAGES = [
    ChatMessage(ChatRole.SYSTEM, "You are an SEO specialist."),
    ChatMessage(ChatRole.SYSTEM, "Answer in JSON."),
    ChatMessage(ChatRole.USER, "Tag this post."),
]


def _response(stop_reason="end_turn"):
    return SimpleNamespace(
        id="msg_1",
        model="claude-sonnet-4-20250514",
        content=[
            SimpleNamespace(type="text", text='{"title": '),
            SimpleNamespace(type="tool_use", name="ignored"),
            SimpleNamespace(type="text", text='"T"}'),
        ],
        stop_reason=stop_reason,
        usage=SimpleNamespace(input_tokens=100, output_tokens=20),
    )


def _provider(create: AsyncMock) -> AnthropicChatProvider:
    client = MagicMock()
    client.messages.create = create
    return AnthropicChatProvider(api_key="key", client=client)


class TestBuildRequest:
    def test_system_collapsed_and_defaults(self):
        kwargs = AnthropicChatProvider(api_key="key").build_request(MESSAGES)

        assert kwargs["system"] == "You are an SEO specialist.\n\nAnswer in JSON."
        assert kwargs["messages"] == [{"role": "user", "content": "Tag this post."}]
        assert kwargs["max_tokens"] == 4096
        assert kwargs["model"] == "claude-sonnet-4-20250514"

    def test_options_mapped_and_temperature_capped(self):
        options = GenerationOptions(temperature=1.6, max_output_tokens=900, top_p=0.8, top_k=10)

        kwargs = AnthropicChatProvider(api_key="key").build_request(MESSAGES, options)

        assert kwargs["temperature"] == 1.0
        assert kwargs["max_tokens"] == 900
        assert kwargs["top_p"] == 0.8
        assert kwargs["top_k"] == 10


class TestComplete:
    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        result = await _provider(AsyncMock(return_value=_response())).complete(MESSAGES)

        assert result.text == '{"title": "T"}'
        assert result.finish_reason is FinishReason.STOP
        assert result.usage.total_tokens == 120
        assert result.completion_id == "msg_1"

    @pytest.mark.asyncio
    async def test_max_tokens_stop_reason(self):
        result = await _provider(
            AsyncMock(return_value=_response(stop_reason="max_tokens"))
        ).complete(MESSAGES)

        assert result.finish_reason is FinishReason.LENGTH

    @pytest.mark.asyncio
    async def test_status_error_is_transport_error(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        error = anthropic.InternalServerError(
            "overloaded",
            response=httpx.Response(529, request=request),
            body=None,
        )

        with pytest.raises(TransportError) as exc_info:
            await _provider(AsyncMock(side_effect=error)).complete(MESSAGES)

        assert exc_info.value.status_code == 529
        assert exc_info.value.provider == "Anthropic"
