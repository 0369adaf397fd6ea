"""Turns the SEO stage's free-form reply into a BlogResult.

Models wrap their JSON in prose or code fences, rename keys, or skip the
JSON entirely. Extraction slices out the outermost object, looks keys up
case-insensitively, and falls back to deterministic defaults. Nothing in
this module raises on bad model output.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from ..models import BlogResult

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Generated Blog Post"
DEFAULT_TAG_KEYS: tuple[str, ...] = ("tags", "primaryKeywords", "keywords")

_SUMMARY_MIN_LINE = 50
_SUMMARY_MAX_CHARS = 200


@dataclass(frozen=True)
class ParsedSeo:
    """SEO fields found in a JSON object. None means the key was absent."""

    title: Optional[str] = None
    meta_description: Optional[str] = None
    tags: tuple[str, ...] = ()
    summary: Optional[str] = None


@dataclass(frozen=True)
class FallbackSeo:
    """The reply held no usable JSON object."""

    reason: str


def _slice_object(raw: str) -> str:
    start = raw.find("{")
    end = raw.rfind("}")
    if start != -1 and end > start:
        return raw[start : end + 1]
    return raw


def _lookup(data: dict, *keys: str) -> Any:
    """Case-insensitive lookup returning the first present key's value."""
    lowered = {str(k).lower(): v for k, v in data.items()}
    for key in keys:
        if key.lower() in lowered:
            return lowered[key.lower()]
    return None


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_tags(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [v for v in value if isinstance(v, str)]
    else:
        return ()
    return tuple(item.strip() for item in items if item.strip())


def parse_seo_text(
    raw: str,
    tag_keys: Sequence[str] = DEFAULT_TAG_KEYS,
) -> Union[ParsedSeo, FallbackSeo]:
    """
    Parse the SEO reply into its fields.

    Args:
        raw: Raw SEO stage output
        tag_keys: Keys to read tags from, highest priority first

    Returns:
        ParsedSeo when a JSON object was found, FallbackSeo otherwise
    """
    try:
        data = json.loads(_slice_object(raw or ""))
    except json.JSONDecodeError as e:
        return FallbackSeo(reason=f"invalid JSON: {e.msg}")
    except RecursionError:
        return FallbackSeo(reason="JSON nested too deeply")

    if not isinstance(data, dict):
        return FallbackSeo(reason=f"expected a JSON object, got {type(data).__name__}")

    tags: tuple[str, ...] = ()
    for key in tag_keys:
        value = _lookup(data, key)
        if value is not None:
            tags = _as_tags(value)
            break

    return ParsedSeo(
        title=_as_text(_lookup(data, "title")),
        meta_description=_as_text(_lookup(data, "metaDescription", "meta_description")),
        tags=tags,
        summary=_as_text(_lookup(data, "summary")),
    )


def summarize_content(text: str) -> str:
    """Use the first substantial non-heading line as a summary."""
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#") and len(line) > _SUMMARY_MIN_LINE:
            if len(line) > _SUMMARY_MAX_CHARS:
                return line[:_SUMMARY_MAX_CHARS] + "..."
            return line
    return ""


def extract_blog_result(
    linted_content: str,
    seo_raw: str,
    fallback_title: Optional[str] = None,
    tag_keys: Sequence[str] = DEFAULT_TAG_KEYS,
    synthesize_summary: bool = True,
) -> BlogResult:
    """
    Build the final BlogResult from the linted body and the SEO reply.

    Args:
        linted_content: Lint stage output, used verbatim as the body
        seo_raw: SEO stage output
        fallback_title: Title to use when the SEO reply has none
        tag_keys: Tag key priority passed to parse_seo_text
        synthesize_summary: Derive a summary from the body when the SEO
            JSON has no summary key

    Returns:
        BlogResult
    """
    title_default = fallback_title or DEFAULT_TITLE
    parsed = parse_seo_text(seo_raw, tag_keys)

    if isinstance(parsed, FallbackSeo):
        logger.warning("[SEO] Using fallback metadata: %s", parsed.reason)
        return BlogResult(title=title_default, content=linted_content)

    title = (parsed.title or "").strip() or title_default
    summary = parsed.summary
    if summary is None:
        summary = summarize_content(linted_content) if synthesize_summary else ""

    return BlogResult(
        title=title,
        content=linted_content,
        tags=parsed.tags,
        meta_description=(parsed.meta_description or "").strip(),
        summary=summary.strip(),
    )
