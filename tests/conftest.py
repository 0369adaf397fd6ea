"""Shared fixtures: a scripted fake provider and isolated settings."""

import asyncio
from typing import Optional, Sequence

import pytest

from blogforge.config.settings import Settings
from blogforge.errors import TransportError
from blogforge.models import BlogRequest
from blogforge.providers.base import (
    ChatCompletionPort,
    ChatMessage,
    CompletionResult,
    GenerationOptions,
    UsageData,
)

SEO_JSON = (
    'Here is the metadata:\n```json\n{"title": "Secrets Stay Secret", '
    '"metaDescription": "Keep tokens out of shell history.", '
    '"tags": ["PowerShell", "Security"], "summary": "A short guide."}\n```'
)


def make_settings(**overrides) -> Settings:
    """Settings with every provider blank, ignoring .env and the environment."""
    values = dict(
        local_model_use_local=False,
        local_model_endpoint="",
        local_model_name="",
        local_model_api_key="",
        gemini_api_key="",
        azure_openai_endpoint="",
        azure_openai_deployment_name="",
        azure_openai_api_key="",
        anthropic_api_key="",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeProvider(ChatCompletionPort):
    """Returns scripted replies in order and records every call."""

    name = "Fake"

    def __init__(
        self,
        replies: Sequence[Optional[str]] = (),
        fail_at: Optional[int] = None,
        block_at: Optional[int] = None,
        usage: Optional[UsageData] = None,
        model_id: str = "fake-model",
    ):
        self.replies = list(replies) or [
            "OUTLINE",
            "DRAFT",
            "EDITED CONTENT:\nEDITED\n\nEDITOR NOTES:\nfixed typos",
            "# Title\n\nLINTED body text that is certainly longer than fifty characters.",
            SEO_JSON,
        ]
        self.fail_at = fail_at
        self.block_at = block_at
        self.usage = usage
        self.model_id = model_id
        self.calls: list[list[ChatMessage]] = []
        self.options: list[Optional[GenerationOptions]] = []
        self.started = asyncio.Event()
        self.was_cancelled = False

    async def complete(self, messages, options=None) -> CompletionResult:
        index = len(self.calls)
        self.calls.append(list(messages))
        self.options.append(options)

        if index == self.fail_at:
            raise TransportError("HTTP 503", provider=self.name, status_code=503)
        if index == self.block_at:
            self.started.set()
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.was_cancelled = True
                raise

        return CompletionResult(
            text=self.replies[index],
            model_id=self.model_id,
            usage=self.usage,
            completion_id=f"fake-{index}",
        )


@pytest.fixture
def request_model() -> BlogRequest:
    return BlogRequest(
        topic="Avoid Storing Secrets in PowerShell History",
        description="Why environment variables still leak",
        target_audience="DevOps Engineers",
        word_count=1000,
        tone="Professional",
    )


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
