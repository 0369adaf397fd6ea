"""Chat completion contract shared by every provider backend.

Each backend translates the role-tagged message list into its own wire
format and returns a CompletionResult. The pipeline only ever talks to
ChatCompletionPort, so switching backends never touches stage code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Mapping, Optional, Sequence


class ChatRole(str, Enum):
    """Role of a message in a completion request."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class FinishReason(str, Enum):
    """Why the upstream model stopped generating."""

    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    TOOL_CALLS = "tool_calls"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ChatMessage:
    """A single role-tagged message."""

    role: ChatRole
    text: str


@dataclass(frozen=True)
class UsageData:
    """Token usage reported by a provider.

    None means the provider did not report the count, not zero tokens.
    """

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options. Providers drop the ones they do not support."""

    temperature: Optional[float] = None  # 0.0-2.0
    max_output_tokens: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None


@dataclass(frozen=True)
class CompletionResult:
    """One assistant reply plus metadata."""

    text: str
    model_id: str
    finish_reason: FinishReason = FinishReason.STOP
    usage: Optional[UsageData] = None
    completion_id: Optional[str] = None


@dataclass(frozen=True)
class CompletionUpdate:
    """A streaming update. Buffered providers emit a single final update."""

    text: str
    model_id: str
    finish_reason: Optional[FinishReason] = None
    usage: Optional[UsageData] = None
    is_final: bool = False


class ChatCompletionPort(ABC):
    """
    Uniform chat completion contract.

    Implementations perform exactly one outbound call per complete()
    and raise TransportError or MalformedResponseError on failure.
    Instances hold no per-call state and can be reused across calls.
    """

    name: str = "provider"
    model_id: str = ""

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> CompletionResult:
        """
        Send the messages and return the assistant reply.

        Args:
            messages: Ordered, non-empty list of messages
            options: Optional sampling options

        Returns:
            CompletionResult for the single assistant reply

        Raises:
            ValueError: If messages is empty
            TransportError: If the HTTP exchange fails
            MalformedResponseError: If the response cannot be interpreted
        """

    async def complete_streaming(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[CompletionUpdate]:
        """
        Stream the reply.

        Providers without native streaming buffer the whole completion and
        yield it as one final update.
        """
        result = await self.complete(messages, options)
        yield CompletionUpdate(
            text=result.text,
            model_id=result.model_id,
            finish_reason=result.finish_reason,
            usage=result.usage,
            is_final=True,
        )


def require_messages(messages: Sequence[ChatMessage]) -> None:
    """Raise ValueError for an empty message list."""
    if not messages:
        raise ValueError("At least one message is required")


def collapse_system_text(messages: Sequence[ChatMessage]) -> str:
    """Join all system messages into one block separated by blank lines."""
    return "\n\n".join(
        m.text for m in messages if m.role == ChatRole.SYSTEM and m.text
    )


def map_finish_reason(
    value: Optional[str],
    table: Mapping[str, FinishReason],
    default: FinishReason,
) -> FinishReason:
    """Map a provider finish reason string onto FinishReason."""
    if not value:
        return default
    return table.get(value.lower(), default)


# OpenAI-style finish reasons, used by the Azure and local backends
OPENAI_FINISH_REASONS: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "content_filter": FinishReason.CONTENT_FILTER,
    "tool_calls": FinishReason.TOOL_CALLS,
    "function_call": FinishReason.TOOL_CALLS,
}
