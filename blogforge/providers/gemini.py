"""Google Gemini backend over the generateContent REST API.

The request body is built by hand: system turns collapse into
systemInstruction, the remaining turns become a contents/parts tree, and
sampling options use Gemini's camelCase generationConfig names.
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from ..errors import MalformedResponseError
from ._http import post_json
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

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "safety": FinishReason.CONTENT_FILTER,
    "recitation": FinishReason.CONTENT_FILTER,
    "blocklist": FinishReason.CONTENT_FILTER,
    "prohibited_content": FinishReason.CONTENT_FILTER,
    "spii": FinishReason.CONTENT_FILTER,
    "image_safety": FinishReason.CONTENT_FILTER,
    "malformed_function_call": FinishReason.TOOL_CALLS,
    "unexpected_tool_call": FinishReason.TOOL_CALLS,
}


class GeminiChatProvider(ChatCompletionPort):
    """Chat completion against the Gemini REST API with an API key header."""

    name = "Gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: float = 60.0,
        base_url: str = GEMINI_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Gemini backend.

        Args:
            api_key: Gemini API key, sent as x-goog-api-key
            model: Model id (e.g. "gemini-2.5-flash")
            timeout: Per-call timeout in seconds
            base_url: API root, overridable for tests
            http_client: Optional shared httpx client
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.api_key = api_key
        self.model_id = model or DEFAULT_GEMINI_MODEL
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model_id}:generateContent"

    def build_request(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> dict[str, Any]:
        """Translate messages and options into a generateContent body."""
        contents = []
        for message in messages:
            if message.role == ChatRole.SYSTEM or not message.text:
                continue
            role = "model" if message.role == ChatRole.ASSISTANT else "user"
            contents.append({"role": role, "parts": [{"text": message.text}]})

        system_text = collapse_system_text(messages)
        if not contents:
            # Gemini rejects a request without contents; send the system text as the turn
            contents.append({"role": "user", "parts": [{"text": system_text}]})
            system_text = ""

        body: dict[str, Any] = {"contents": contents}
        if system_text:
            body["systemInstruction"] = {"parts": [{"text": system_text}]}

        generation_config = self._generation_config(options)
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def _generation_config(self, options: Optional[GenerationOptions]) -> dict[str, Any]:
        if options is None:
            return {}
        config: dict[str, Any] = {}
        if options.temperature is not None:
            config["temperature"] = float(options.temperature)
        if options.max_output_tokens is not None:
            config["maxOutputTokens"] = int(options.max_output_tokens)
        if options.top_p is not None:
            config["topP"] = float(options.top_p)
        if options.top_k is not None:
            config["topK"] = int(options.top_k)
        return config

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> CompletionResult:
        require_messages(messages)
        body = self.build_request(messages, options)

        logger.info("[GEMINI] Calling %s (%d messages)...", self.model_id, len(messages))
        data = await post_json(
            self.endpoint,
            body,
            headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
            timeout=self.timeout,
            provider=self.name,
            client=self.http_client,
        )
        return self.parse_response(data)

    def parse_response(self, data: dict[str, Any]) -> CompletionResult:
        """Locate the first candidate's first text part."""
        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            detail = f" (prompt blocked: {block_reason})" if block_reason else ""
            raise MalformedResponseError(
                f"Gemini response has no candidates{detail}", provider=self.name
            )

        candidate = candidates[0] if isinstance(candidates[0], dict) else {}
        content = candidate.get("content")
        if not isinstance(content, dict):
            raise MalformedResponseError("Gemini candidate has no content", provider=self.name)

        parts = content.get("parts")
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            raise MalformedResponseError("Gemini candidate has no parts", provider=self.name)

        text = parts[0].get("text")
        if not isinstance(text, str):
            raise MalformedResponseError("Gemini first part has no text", provider=self.name)

        finish = candidate.get("finishReason")
        finish_reason = (
            map_finish_reason(finish, _FINISH_REASONS, FinishReason.UNKNOWN)
            if finish
            else FinishReason.STOP
        )

        usage_meta = data.get("usageMetadata")
        usage = None
        if isinstance(usage_meta, dict):
            usage = UsageData(
                input_tokens=usage_meta.get("promptTokenCount"),
                output_tokens=usage_meta.get("candidatesTokenCount"),
                total_tokens=usage_meta.get("totalTokenCount"),
            )

        return CompletionResult(
            text=text,
            model_id=data.get("modelVersion") or self.model_id,
            finish_reason=finish_reason,
            usage=usage,
            completion_id=data.get("responseId"),
        )
