"""Azure OpenAI backend using the official openai SDK.

Translation is mostly pass-through: the SDK already speaks role-tagged chat
messages. Authentication is fixed at construction, either an API key or the
ambient Azure credential chain (managed identity, az login, environment).
"""

import logging
from typing import Any, Optional, Sequence

import openai
from openai import AsyncAzureOpenAI

from ..errors import MalformedResponseError, TransportError
from .base import (
    OPENAI_FINISH_REASONS,
    ChatCompletionPort,
    ChatMessage,
    CompletionResult,
    FinishReason,
    GenerationOptions,
    UsageData,
    map_finish_reason,
    require_messages,
)

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-10-21"
COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


class AzureOpenAIChatProvider(ChatCompletionPort):
    """Chat completion against an Azure OpenAI deployment."""

    name = "Azure OpenAI"

    def __init__(
        self,
        endpoint: str,
        deployment: str,
        api_key: str = "",
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 60.0,
        client: Optional[AsyncAzureOpenAI] = None,
    ):
        """
        Initialize the Azure OpenAI backend.

        Args:
            endpoint: Resource endpoint (https://<name>.openai.azure.com)
            deployment: Deployment name, sent as the model
            api_key: API key; when empty, DefaultAzureCredential is used
            api_version: Azure OpenAI REST API version
            timeout: Per-call timeout in seconds
            client: Optional pre-built SDK client
        """
        self.endpoint = endpoint
        self.model_id = deployment
        self.auth_mode = "api_key" if api_key else "default_credential"

        if client is None:
            if api_key:
                client = AsyncAzureOpenAI(
                    azure_endpoint=endpoint,
                    api_key=api_key,
                    api_version=api_version,
                    timeout=timeout,
                    max_retries=0,
                )
            else:
                from azure.identity import DefaultAzureCredential, get_bearer_token_provider

                token_provider = get_bearer_token_provider(
                    DefaultAzureCredential(), COGNITIVE_SERVICES_SCOPE
                )
                client = AsyncAzureOpenAI(
                    azure_endpoint=endpoint,
                    azure_ad_token_provider=token_provider,
                    api_version=api_version,
                    timeout=timeout,
                    max_retries=0,
                )
        self.client = client

    def build_request(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model_id,
            "messages": [{"role": m.role.value, "content": m.text} for m in messages],
        }
        if options is not None:
            if options.temperature is not None:
                kwargs["temperature"] = options.temperature
            if options.max_output_tokens is not None:
                kwargs["max_tokens"] = options.max_output_tokens
            if options.top_p is not None:
                kwargs["top_p"] = options.top_p
        return kwargs

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> CompletionResult:
        require_messages(messages)
        kwargs = self.build_request(messages, options)

        logger.info("[AZURE] Calling deployment %s (%s auth)...", self.model_id, self.auth_mode)
        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIResponseValidationError as exc:
            raise MalformedResponseError(
                f"Azure OpenAI response failed validation: {exc}", provider=self.name
            ) from exc
        except openai.APIStatusError as exc:
            raise TransportError(
                f"Azure OpenAI returned HTTP {exc.status_code}: {exc.message}",
                provider=self.name,
                status_code=exc.status_code,
            ) from exc
        except openai.APIError as exc:
            raise TransportError(f"Azure OpenAI request failed: {exc}", provider=self.name) from exc

        return self.parse_response(response)

    def parse_response(self, response: Any) -> CompletionResult:
        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponseError("Azure OpenAI response has no choices", provider=self.name)

        choice = choices[0]
        message = getattr(choice, "message", None)
        if message is None:
            raise MalformedResponseError("Azure OpenAI choice has no message", provider=self.name)

        usage = None
        if getattr(response, "usage", None) is not None:
            usage = UsageData(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return CompletionResult(
            text=message.content or "",
            model_id=getattr(response, "model", None) or self.model_id,
            finish_reason=map_finish_reason(
                choice.finish_reason, OPENAI_FINISH_REASONS, FinishReason.UNKNOWN
            ),
            usage=usage,
            completion_id=getattr(response, "id", None),
        )
