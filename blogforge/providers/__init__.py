"""Chat completion providers."""

from .anthropic_fallback import AnthropicChatProvider
from .azure_openai import AzureOpenAIChatProvider
from .base import (
    ChatCompletionPort,
    ChatMessage,
    ChatRole,
    CompletionResult,
    CompletionUpdate,
    FinishReason,
    GenerationOptions,
    UsageData,
)
from .gemini import GeminiChatProvider
from .local import LocalChatProvider

__all__ = [
    "AnthropicChatProvider",
    "AzureOpenAIChatProvider",
    "ChatCompletionPort",
    "ChatMessage",
    "ChatRole",
    "CompletionResult",
    "CompletionUpdate",
    "FinishReason",
    "GenerationOptions",
    "GeminiChatProvider",
    "LocalChatProvider",
    "UsageData",
]
