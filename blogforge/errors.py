"""Error types shared across providers, the pipeline and the CLI.

Provider errors (transport and malformed-response) are stage-fatal and are
never retried. Configuration errors are raised before any stage runs.
"""

from typing import Optional, Sequence


class BlogForgeError(Exception):
    """Base error for the blog generation pipeline."""


class ConfigurationError(BlogForgeError):
    """No provider could be resolved, or the selected one is incomplete."""

    def __init__(
        self,
        message: str,
        missing: Sequence[str] = (),
        providers_checked: Sequence[str] = (),
    ):
        super().__init__(message)
        self.missing = tuple(missing)
        self.providers_checked = tuple(providers_checked)


class RequestValidationError(BlogForgeError):
    """A blog request could not be loaded or failed validation."""


class ProviderError(BlogForgeError):
    """Base for errors raised by a chat completion provider."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class TransportError(ProviderError):
    """The HTTP exchange failed: connection, timeout or non-2xx status."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider)
        self.status_code = status_code


class MalformedResponseError(ProviderError):
    """The upstream body could not be interpreted as a completion."""


class StageFailedError(BlogForgeError):
    """A pipeline stage failed; the provider error is chained as __cause__."""

    def __init__(self, stage, elapsed_ns: int, completed_stages: Sequence = ()):
        self.stage = stage
        self.elapsed_ns = elapsed_ns
        self.completed_stages = tuple(completed_stages)
        super().__init__(
            f"Stage '{stage.value}' failed after {elapsed_ns / 1_000_000:.0f} ms"
        )


class PipelineCancelledError(BlogForgeError):
    """The run was cancelled while a stage's completion call was in flight."""

    def __init__(self, stage, elapsed_ns: int, completed_stages: Sequence = ()):
        self.stage = stage
        self.elapsed_ns = elapsed_ns
        self.completed_stages = tuple(completed_stages)
        super().__init__(f"Cancelled at {stage.label}")
