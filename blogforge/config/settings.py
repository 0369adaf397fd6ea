"""Configuration settings for the blog generation pipeline."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from ..providers.base import GenerationOptions

# Load .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Local OpenAI-compatible server (checked first)
    local_model_use_local: bool = False
    local_model_endpoint: str = os.getenv("LOCAL_MODEL_ENDPOINT", "")
    local_model_name: str = os.getenv("LOCAL_MODEL_NAME", "")
    local_model_api_key: str = os.getenv("LOCAL_MODEL_API_KEY", "")
    local_model_chat_path: str = "engines/llama.cpp/v1/chat/completions"
    local_model_timeout_seconds: float = 600.0  # local inference takes minutes

    # Gemini (alternative cloud)
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", "")
    gemini_model: str = "gemini-2.5-flash"

    # Azure OpenAI (primary cloud)
    azure_openai_endpoint: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    azure_openai_deployment_name: str = os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "")
    azure_openai_api_key: str = os.getenv("AZURE_OPENAI_API_KEY", "")
    azure_openai_api_version: str = "2024-10-21"

    # Anthropic (fallback)
    anthropic_api_key: str = os.getenv("ANTHROPIC_API_KEY", "")
    fallback_model_id: str = "claude-sonnet-4-20250514"

    cloud_timeout_seconds: float = 60.0

    # Generation Parameters (unset = provider default)
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None

    # Pipeline behaviour
    strip_editor_notes: bool = True
    tag_keys: list[str] = ["tags", "primaryKeywords", "keywords"]
    synthesize_summary: bool = True
    fallback_title: str = "Generated Blog Post"

    # Output
    output_dir: Path = Path(".")
    seo_sidecar_name: str = "blog-seo-data.json"
    default_author: str = ""
    banner_image: str = "img/banner.jpg"

    # Request defaults file (YAML with a blog_request section)
    request_config_file: Path = Path("blogforge.yaml")

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def generation_options(self) -> Optional[GenerationOptions]:
        """Build GenerationOptions from the configured sampling settings."""
        if all(
            value is None
            for value in (self.temperature, self.max_output_tokens, self.top_p, self.top_k)
        ):
            return None
        return GenerationOptions(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            top_p=self.top_p,
            top_k=self.top_k,
        )


# Global settings instance
settings = Settings()
