"""Stage descriptors for the five-step blog pipeline.

Each stage is data: which prompt templates it renders, how it builds the
template variables from the request and the previous stage's output, and
how its raw output is cleaned before being forwarded.
"""

import re
from dataclasses import dataclass
from typing import Callable

from ..models import BlogRequest, Stage

_EDITOR_NOTES = re.compile(r"EDITOR NOTES:", re.IGNORECASE)
_EDITED_CONTENT = re.compile(r"^\s*EDITED CONTENT:", re.IGNORECASE)


def strip_editor_notes(text: str) -> str:
    """Drop the editor's change notes and the EDITED CONTENT label."""
    match = _EDITOR_NOTES.search(text)
    if match:
        text = text[: match.start()]
    text = _EDITED_CONTENT.sub("", text, count=1)
    return text.strip()


def _passthrough(text: str) -> str:
    return text


@dataclass(frozen=True)
class StageDescriptor:
    """How one pipeline stage renders its prompts and cleans its output."""

    stage: Stage
    system_template: str
    user_template: str
    build_vars: Callable[[BlogRequest, str], dict[str, str]]
    postprocess: Callable[[str], str] = _passthrough

    @property
    def label(self) -> str:
        return self.stage.label


STAGES: tuple[StageDescriptor, ...] = (
    StageDescriptor(
        stage=Stage.RESEARCH,
        system_template="research_system",
        user_template="research_user",
        build_vars=lambda req, _prev: {
            "topic": req.topic,
            "description": req.description,
            "audience": req.target_audience,
        },
    ),
    StageDescriptor(
        stage=Stage.WRITE,
        system_template="write_system",
        user_template="write_user",
        build_vars=lambda req, prev: {
            "outline": prev,
            "tone": req.tone,
            "word_count": str(req.word_count),
        },
    ),
    StageDescriptor(
        stage=Stage.EDIT,
        system_template="edit_system",
        user_template="edit_user",
        build_vars=lambda _req, prev: {"draft": prev},
        postprocess=strip_editor_notes,
    ),
    StageDescriptor(
        stage=Stage.LINT,
        system_template="lint_system",
        user_template="lint_user",
        build_vars=lambda _req, prev: {"content": prev},
    ),
    StageDescriptor(
        stage=Stage.SEO,
        system_template="seo_system",
        user_template="seo_user",
        build_vars=lambda req, prev: {"content": prev, "topic": req.topic},
    ),
)
