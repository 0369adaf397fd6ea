"""Anthropic fallback backend.

Last-resort provider used when only an Anthropic API key is configured.
It always targets a fixed default model.
"""

import logging
from typing import Any, Optional, Sequence

import anthropic

from ..errors import MalformedResponseError, TransportError
from .base import (
    ChatCompletionPort,
    ChatMessage,
    ChatRole,
    CompletionResult,
    FinishReason,
    GenerationOptions,
    UsageData,
    collapse_system_text,
    map_finish_reason,
    require_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 4096

_STOP_REASONS: dict[str, FinishReason] = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "tool_use": FinishReason.TOOL_CALLS,
    "refusal": FinishReason.CONTENT_FILTER,
}


class AnthropicChatProvider(ChatCompletionPort):
    """Chat completion through the Anthropic Messages API."""

    name = "Anthropic"

    def __init__(
        self,
        api_key: str,
        model_id: str = DEFAULT_FALLBACK_MODEL,
        timeout: float = 60.0,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Initialize the fallback backend.

        Args:
            api_key: Anthropic API key
            model_id: Model to use (default: claude-sonnet-4-20250514)
            timeout: Per-call timeout in seconds
            client: Optional pre-built SDK client
        """
        self.model_id = model_id or DEFAULT_FALLBACK_MODEL
        self.client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    def build_request(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> dict[str, Any]:
        turns = [
            {"role": m.role.value, "content": m.text}
            for m in messages
            if m.role != ChatRole.SYSTEM and m.text
        ]
        system_text = collapse_system_text(messages)
        if not turns:
            turns = [{"role": "user", "content": system_text}]
            system_text = ""

        max_tokens = DEFAULT_MAX_TOKENS
        if options is not None and options.max_output_tokens is not None:
            max_tokens = options.max_output_tokens

        kwargs: dict[str, Any] = {
            "model": self.model_id,
            "max_tokens": max_tokens,
            "messages": turns,
        }
        if system_text:
            kwargs["system"] = system_text
        if options is not None:
            # Anthropic caps temperature at 1.0
            if options.temperature is not None:
                kwargs["temperature"] = min(options.temperature, 1.0)
            if options.top_p is not None:
                kwargs["top_p"] = options.top_p
            if options.top_k is not None:
                kwargs["top_k"] = options.top_k
        return kwargs

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> CompletionResult:
        require_messages(messages)
        kwargs = self.build_request(messages, options)

        logger.info("[ANTHROPIC] Calling %s...", self.model_id)
        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIStatusError as exc:
            raise TransportError(
                f"Anthropic returned HTTP {exc.status_code}: {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc
        except anthropic.APIError as exc:
            raise TransportError(f"Anthropic request failed: {exc}", provider=self.name) from exc

        return self.parse_response(response)

    def parse_response(self, response: Any) -> CompletionResult:
        content = getattr(response, "content", None)
        if content is None:
            raise MalformedResponseError("Anthropic response has no content", provider=self.name)

        text = "".join(block.text for block in content if block.type == "text")

        usage = None
        if getattr(response, "usage", None) is not None:
            input_tokens = response.usage.input_tokens
            output_tokens = response.usage.output_tokens
            total = (
                input_tokens + output_tokens
                if input_tokens is not None and output_tokens is not None
                else None
            )
            usage = UsageData(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=total,
            )

        return CompletionResult(
            text=text,
            model_id=getattr(response, "model", None) or self.model_id,
            finish_reason=map_finish_reason(
                response.stop_reason, _STOP_REASONS, FinishReason.UNKNOWN
            ),
            usage=usage,
            completion_id=getattr(response, "id", None),
        )
