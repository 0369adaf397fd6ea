"""Local OpenAI-compatible chat backend (Docker Model Runner, llama.cpp, Ollama).

Local inference is slow, so the default timeout is ten minutes rather than
the tens of seconds used for cloud backends.
"""

import logging
from typing import Any, Optional, Sequence
from urllib.parse import urlparse

import httpx

from ..errors import MalformedResponseError
from ._http import post_json
from .base import (
    OPENAI_FINISH_REASONS,
    ChatCompletionPort,
    ChatMessage,
    ChatRole,
    CompletionResult,
    FinishReason,
    GenerationOptions,
    UsageData,
    map_finish_reason,
    require_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_CHAT_PATH = "engines/llama.cpp/v1/chat/completions"
DEFAULT_LOCAL_TIMEOUT = 600.0


class LocalChatProvider(ChatCompletionPort):
    """Chat completion against a local server speaking the OpenAI chat schema."""

    name = "Local"

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: str = "",
        chat_path: str = DEFAULT_CHAT_PATH,
        timeout: float = DEFAULT_LOCAL_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the local backend.

        Args:
            endpoint: Server base URL (e.g. "http://localhost:12434")
            model: Model name loaded on the server
            api_key: Optional bearer token
            chat_path: Path of the chat completions route under endpoint
            timeout: Per-call timeout in seconds
            http_client: Optional shared httpx client
        """
        parsed = urlparse(endpoint or "")
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Local endpoint must be an http(s) URL with a host: {endpoint!r}")
        if not model:
            raise ValueError("Local model name is required")
        self.base_url = endpoint.rstrip("/")
        self.model_id = model
        self.api_key = api_key
        self.chat_path = chat_path.strip("/")
        self.timeout = timeout
        self.http_client = http_client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.chat_path}"

    def build_request(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> dict[str, Any]:
        """Build the snake_case chat completions body."""
        local_messages = []
        for message in messages:
            content = _flatten_content(message.text)
            if not content:
                continue
            local_messages.append({"role": _convert_role(message.role), "content": content})

        body: dict[str, Any] = {
            "model": self.model_id,
            "messages": local_messages,
            "stream": False,
        }
        if options is not None:
            if options.temperature is not None:
                body["temperature"] = float(options.temperature)
            if options.max_output_tokens is not None:
                body["max_tokens"] = int(options.max_output_tokens)
            if options.top_p is not None:
                body["top_p"] = float(options.top_p)
        return body

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> CompletionResult:
        require_messages(messages)
        body = self.build_request(messages, options)

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        logger.info("[LOCAL] Calling %s at %s...", self.model_id, self.base_url)
        data = await post_json(
            self.endpoint,
            body,
            headers=headers,
            timeout=self.timeout,
            provider=self.name,
            client=self.http_client,
        )
        return self.parse_response(data)

    def parse_response(self, data: dict[str, Any]) -> CompletionResult:
        """Read choices[0].message.content and snake_case usage fields."""
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise MalformedResponseError("Local response has no choices", provider=self.name)

        choice = choices[0]
        message = choice.get("message")
        text = message.get("content") if isinstance(message, dict) else None
        if not isinstance(text, str):
            raise MalformedResponseError(
                "Local response has no message content", provider=self.name
            )

        usage = None
        usage_data = data.get("usage")
        if isinstance(usage_data, dict):
            usage = UsageData(
                input_tokens=usage_data.get("prompt_tokens"),
                output_tokens=usage_data.get("completion_tokens"),
                total_tokens=usage_data.get("total_tokens"),
            )

        return CompletionResult(
            text=text,
            model_id=data.get("model") or self.model_id,
            finish_reason=map_finish_reason(
                choice.get("finish_reason"), OPENAI_FINISH_REASONS, FinishReason.STOP
            ),
            usage=usage,
            completion_id=data.get("id"),
        )


def _flatten_content(content: Any) -> str:
    """Collapse text or a list of text parts into one string."""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        pieces = []
        for part in content:
            if isinstance(part, str):
                pieces.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                pieces.append(part["text"])
        return "".join(pieces)
    return ""


def _convert_role(role: ChatRole) -> str:
    if role in (ChatRole.SYSTEM, ChatRole.ASSISTANT, ChatRole.USER):
        return role.value
    return "user"
