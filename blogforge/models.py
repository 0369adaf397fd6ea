"""Request, stage and result models for the blog pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .providers.base import UsageData


class BlogRequest(BaseModel):
    """What to write: topic, audience, tone and target length."""

    model_config = ConfigDict(frozen=True)

    topic: str
    description: str = ""
    target_audience: str = "General"
    word_count: int = Field(default=800, gt=0)
    tone: str = "Professional"
    author: Optional[str] = None

    @field_validator("topic")
    @classmethod
    def topic_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Blog request must have a topic")
        return v

    @field_validator("target_audience", "tone")
    @classmethod
    def blank_uses_default(cls, v: str, info) -> str:
        v = v.strip()
        if v:
            return v
        return "General" if info.field_name == "target_audience" else "Professional"


class Stage(str, Enum):
    """Pipeline stages in execution order."""

    RESEARCH = "research"
    WRITE = "write"
    EDIT = "edit"
    LINT = "lint"
    SEO = "seo"

    @property
    def label(self) -> str:
        return "SEO" if self is Stage.SEO else self.value.capitalize()


@dataclass(frozen=True)
class PipelineStageRecord:
    """Telemetry for one completed stage."""

    stage: Stage
    input_text: str
    output_text: str
    elapsed_ns: int
    model_id: str = ""
    usage: Optional[UsageData] = None
    completion_id: Optional[str] = None

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000

    @property
    def elapsed_seconds(self) -> float:
        return self.elapsed_ns / 1_000_000_000


@dataclass(frozen=True)
class BlogResult:
    """Final blog post: linted body plus SEO metadata."""

    title: str
    content: str
    tags: tuple[str, ...] = ()
    meta_description: str = ""
    summary: str = ""
