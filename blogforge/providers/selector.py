"""Startup selection of the single chat completion backend.

Checked in a fixed order, first match wins:
1. Local server (explicit opt-in flag)
2. Gemini (API key)
3. Azure OpenAI (endpoint; API key or ambient credential)
4. Anthropic fallback (API key)
"""

import logging
import sys

from ..config.settings import Settings
from ..errors import ConfigurationError
from .anthropic_fallback import AnthropicChatProvider
from .azure_openai import AzureOpenAIChatProvider
from .base import ChatCompletionPort
from .gemini import GeminiChatProvider
from .local import LocalChatProvider

logger = logging.getLogger(__name__)

PROVIDERS_CHECKED = (
    "Local (LOCAL_MODEL_USE_LOCAL + LOCAL_MODEL_ENDPOINT + LOCAL_MODEL_NAME)",
    "Gemini (GEMINI_API_KEY)",
    "Azure OpenAI (AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_DEPLOYMENT_NAME)",
    "Anthropic (ANTHROPIC_API_KEY)",
)


def _present(value: str) -> str:
    return "present" if value else "missing"


def select_provider(config: Settings) -> ChatCompletionPort:
    """
    Resolve exactly one provider from configuration.

    An incomplete local configuration terminates the process, since the
    operator explicitly asked for the local server.

    Args:
        config: Loaded settings

    Returns:
        The configured ChatCompletionPort

    Raises:
        SystemExit: Local model enabled but endpoint or model name missing
        ConfigurationError: Local endpoint invalid, Azure deployment missing,
            or nothing configured
    """
    if config.local_model_use_local:
        endpoint = config.local_model_endpoint.strip()
        model_name = config.local_model_name.strip()
        if not endpoint or not model_name:
            logger.error("[SELECTOR] Local model configuration is incomplete.")
            logger.error("  Endpoint: %s", _present(endpoint))
            logger.error("  ModelName: %s", _present(model_name))
            sys.exit(1)
        try:
            provider = LocalChatProvider(
                endpoint=endpoint,
                model=model_name,
                api_key=config.local_model_api_key,
                chat_path=config.local_model_chat_path,
                timeout=config.local_model_timeout_seconds,
            )
        except ValueError as e:
            raise ConfigurationError(
                f"LOCAL_MODEL_ENDPOINT is invalid: {e}",
                missing=("LOCAL_MODEL_ENDPOINT",),
                providers_checked=PROVIDERS_CHECKED[:1],
            ) from e
        logger.info("[SELECTOR] Using local model %s at %s", model_name, endpoint)
        return provider

    if config.gemini_api_key.strip():
        logger.info("[SELECTOR] Using Gemini model %s", config.gemini_model)
        return GeminiChatProvider(
            api_key=config.gemini_api_key.strip(),
            model=config.gemini_model,
            timeout=config.cloud_timeout_seconds,
        )

    if config.azure_openai_endpoint.strip():
        deployment = config.azure_openai_deployment_name.strip()
        if not deployment:
            raise ConfigurationError(
                "Azure OpenAI endpoint is set but AZURE_OPENAI_DEPLOYMENT_NAME is missing",
                missing=("AZURE_OPENAI_DEPLOYMENT_NAME",),
                providers_checked=PROVIDERS_CHECKED[:3],
            )
        api_key = config.azure_openai_api_key.strip()
        logger.info(
            "[SELECTOR] Using Azure OpenAI deployment %s (%s)",
            deployment,
            "API key" if api_key else "default Azure credential",
        )
        return AzureOpenAIChatProvider(
            endpoint=config.azure_openai_endpoint.strip(),
            deployment=deployment,
            api_key=api_key,
            api_version=config.azure_openai_api_version,
            timeout=config.cloud_timeout_seconds,
        )

    if config.anthropic_api_key.strip():
        logger.info("[SELECTOR] Using Anthropic fallback model %s", config.fallback_model_id)
        return AnthropicChatProvider(
            api_key=config.anthropic_api_key.strip(),
            model_id=config.fallback_model_id,
            timeout=config.cloud_timeout_seconds,
        )

    raise ConfigurationError(
        "No chat provider configured. Checked: " + "; ".join(PROVIDERS_CHECKED),
        providers_checked=PROVIDERS_CHECKED,
    )
