"""Pipeline stages, orchestration and SEO extraction."""

from .orchestrator import BlogOrchestrator, PipelineResult
from .seo_extractor import (
    DEFAULT_TAG_KEYS,
    DEFAULT_TITLE,
    FallbackSeo,
    ParsedSeo,
    extract_blog_result,
    parse_seo_text,
    summarize_content,
)
from .stages import STAGES, StageDescriptor, strip_editor_notes

__all__ = [
    "BlogOrchestrator",
    "PipelineResult",
    "DEFAULT_TAG_KEYS",
    "DEFAULT_TITLE",
    "FallbackSeo",
    "ParsedSeo",
    "extract_blog_result",
    "parse_seo_text",
    "summarize_content",
    "STAGES",
    "StageDescriptor",
    "strip_editor_notes",
]
