"""Orchestrator for the sequential blog generation pipeline.

Manages the full pipeline:
1. Research an outline for the topic
2. Write a draft from the outline
3. Edit the draft
4. Lint the edited markdown
5. Generate SEO metadata for the linted post
6. Extract the final BlogResult

Every stage makes exactly one call to the shared provider. Any provider
failure aborts the run with no partial result.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from ..errors import PipelineCancelledError, StageFailedError
from ..models import BlogRequest, BlogResult, PipelineStageRecord, Stage
from ..prompts import render
from ..providers.base import (
    ChatCompletionPort,
    ChatMessage,
    ChatRole,
    CompletionResult,
    GenerationOptions,
)
from ..utils.cost_tracker import PipelineCosts
from ..utils.timing import format_elapsed
from .seo_extractor import DEFAULT_TAG_KEYS, extract_blog_result
from .stages import STAGES, StageDescriptor

logger = logging.getLogger(__name__)

StageStartCallback = Callable[[Stage], None]
StageCompleteCallback = Callable[[PipelineStageRecord], None]


@dataclass
class PipelineResult:
    """Full result from the generation pipeline."""

    blog: BlogResult
    stages: tuple[PipelineStageRecord, ...]
    total_elapsed_ns: int
    seo_raw: str
    costs: PipelineCosts = field(default_factory=PipelineCosts)
    provider_name: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_elapsed_ms(self) -> float:
        return self.total_elapsed_ns / 1_000_000

    def stage(self, stage: Stage) -> PipelineStageRecord:
        """Return the record for one stage."""
        for record in self.stages:
            if record.stage is stage:
                return record
        raise KeyError(stage)

    def stats(self) -> dict:
        """Timing and cost summary for the run log."""
        return {
            "provider": self.provider_name,
            "started_at": self.started_at.isoformat(),
            "total_elapsed_ms": round(self.total_elapsed_ms, 3),
            "stages": [
                {
                    "stage": record.stage.value,
                    "model": record.model_id,
                    "completion_id": record.completion_id,
                    "elapsed_ms": round(record.elapsed_ms, 3),
                    "output_chars": len(record.output_text),
                }
                for record in self.stages
            ],
            "costs": self.costs.to_dict(),
        }


class BlogOrchestrator:
    """
    Runs Research, Write, Edit, Lint and SEO in order over one provider.

    Each stage's output is forwarded as the next stage's input. Stages are
    timed individually and the whole run is timed around the loop.
    """

    def __init__(
        self,
        provider: ChatCompletionPort,
        options: Optional[GenerationOptions] = None,
        strip_editor_notes: bool = True,
        tag_keys: Sequence[str] = DEFAULT_TAG_KEYS,
        fallback_title: Optional[str] = None,
        synthesize_summary: bool = True,
        on_stage_start: Optional[StageStartCallback] = None,
        on_stage_complete: Optional[StageCompleteCallback] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            provider: Chat completion backend shared by all stages
            options: Sampling options passed to every call
            strip_editor_notes: Remove the editor's notes before Lint
            tag_keys: SEO JSON keys to read tags from, in priority order
            fallback_title: Title used when the SEO reply has none
            synthesize_summary: Derive a summary when the SEO JSON has none
            on_stage_start: Called with the Stage before its call
            on_stage_complete: Called with each finished stage record
        """
        self.provider = provider
        self.options = options
        self.strip_editor_notes = strip_editor_notes
        self.tag_keys = tuple(tag_keys)
        self.fallback_title = fallback_title
        self.synthesize_summary = synthesize_summary
        self.on_stage_start = on_stage_start
        self.on_stage_complete = on_stage_complete

    def build_messages(
        self,
        descriptor: StageDescriptor,
        request: BlogRequest,
        previous: str,
    ) -> list[ChatMessage]:
        """Render the system and user prompts for one stage."""
        variables = descriptor.build_vars(request, previous)
        return [
            ChatMessage(ChatRole.SYSTEM, render(descriptor.system_template)),
            ChatMessage(ChatRole.USER, render(descriptor.user_template, **variables)),
        ]

    def _postprocess(self, descriptor: StageDescriptor, text: str) -> str:
        if descriptor.stage is Stage.EDIT and not self.strip_editor_notes:
            return text
        return descriptor.postprocess(text)

    async def _call(
        self,
        messages: list[ChatMessage],
        cancel_event: Optional[asyncio.Event],
    ) -> Optional[CompletionResult]:
        """Run one completion, returning None if cancel_event wins the race."""
        if cancel_event is None:
            return await self.provider.complete(messages, self.options)

        call = asyncio.ensure_future(self.provider.complete(messages, self.options))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            waiter.cancel()

        if call.done():
            return call.result()

        call.cancel()
        # Let the cancelled call unwind before reporting
        await asyncio.gather(call, return_exceptions=True)
        return None

    async def run(
        self,
        request: BlogRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PipelineResult:
        """
        Run the full generation pipeline.

        Args:
            request: What to write about
            cancel_event: Set to abandon the run; the in-flight call is cancelled

        Returns:
            PipelineResult with the blog post, stage records and costs

        Raises:
            StageFailedError: If a provider call fails (cause is chained)
            PipelineCancelledError: If cancel_event is set during the run
        """
        started_at = datetime.now(timezone.utc)
        costs = PipelineCosts()
        records: list[PipelineStageRecord] = []
        previous = ""

        logger.info(
            "[PIPELINE] Starting run for '%s' with %s",
            request.topic,
            self.provider.name,
        )
        run_start = time.perf_counter_ns()

        for descriptor in STAGES:
            stage = descriptor.stage
            if cancel_event is not None and cancel_event.is_set():
                raise PipelineCancelledError(
                    stage, time.perf_counter_ns() - run_start, records
                )

            messages = self.build_messages(descriptor, request, previous)
            if self.on_stage_start:
                self.on_stage_start(stage)
            logger.info("[PIPELINE] %s stage starting...", descriptor.label)

            stage_start = time.perf_counter_ns()
            try:
                result = await self._call(messages, cancel_event)
            except asyncio.CancelledError:
                logger.warning("[PIPELINE] Run cancelled during %s stage", descriptor.label)
                raise
            except Exception as e:
                elapsed = time.perf_counter_ns() - run_start
                logger.error(
                    "[PIPELINE] %s stage failed after %s: %s",
                    descriptor.label,
                    format_elapsed(elapsed),
                    str(e),
                )
                raise StageFailedError(stage, elapsed, records) from e
            stage_elapsed = time.perf_counter_ns() - stage_start

            if result is None:
                logger.warning("[PIPELINE] Cancel requested during %s stage", descriptor.label)
                raise PipelineCancelledError(
                    stage, time.perf_counter_ns() - run_start, records
                )

            output = self._postprocess(descriptor, result.text or "")
            model_id = result.model_id or self.provider.model_id
            record = PipelineStageRecord(
                stage=stage,
                input_text=messages[-1].text,
                output_text=output,
                elapsed_ns=stage_elapsed,
                model_id=model_id,
                usage=result.usage,
                completion_id=result.completion_id,
            )
            records.append(record)
            costs.add_usage(stage.value, model_id, result.usage)

            logger.info(
                "[PIPELINE] %s stage done in %s (%d chars)",
                descriptor.label,
                format_elapsed(stage_elapsed),
                len(output),
            )
            if self.on_stage_complete:
                self.on_stage_complete(record)
            previous = output

        total_elapsed = time.perf_counter_ns() - run_start

        lint_output = records[3].output_text
        seo_raw = records[4].output_text
        blog = extract_blog_result(
            lint_output,
            seo_raw,
            fallback_title=self.fallback_title,
            tag_keys=self.tag_keys,
            synthesize_summary=self.synthesize_summary,
        )

        logger.info(
            "[PIPELINE] Finished '%s' in %s (est. cost $%.4f)",
            blog.title,
            format_elapsed(total_elapsed),
            costs.total_cost(),
        )

        return PipelineResult(
            blog=blog,
            stages=tuple(records),
            total_elapsed_ns=total_elapsed,
            seo_raw=seo_raw,
            costs=costs,
            provider_name=self.provider.name,
            started_at=started_at,
        )
