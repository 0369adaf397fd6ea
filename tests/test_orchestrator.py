"""Tests for blogforge.agents.orchestrator."""

import asyncio

import pytest

from blogforge.agents.orchestrator import BlogOrchestrator
from blogforge.errors import PipelineCancelledError, StageFailedError, TransportError
from blogforge.models import Stage
from blogforge.providers.base import ChatRole, GenerationOptions, UsageData
from tests.conftest import FakeProvider


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_five_calls_in_stage_order(self, fake_provider, request_model):
        """One call per stage, each with a system then a user message."""
        result = await BlogOrchestrator(fake_provider).run(request_model)

        assert len(fake_provider.calls) == 5
        assert [r.stage for r in result.stages] == list(Stage)
        for messages in fake_provider.calls:
            assert [m.role for m in messages] == [ChatRole.SYSTEM, ChatRole.USER]

    @pytest.mark.asyncio
    async def test_research_prompt_uses_request_fields(self, fake_provider, request_model):
        await BlogOrchestrator(fake_provider).run(request_model)

        user = fake_provider.calls[0][1].text
        assert request_model.topic in user
        assert request_model.description in user
        assert request_model.target_audience in user

    @pytest.mark.asyncio
    async def test_each_output_forwarded_to_next_stage(self, fake_provider, request_model):
        """Stage N output appears verbatim in stage N+1's user prompt."""
        result = await BlogOrchestrator(fake_provider).run(request_model)

        for i in range(4):
            assert result.stages[i].output_text in fake_provider.calls[i + 1][1].text
            assert result.stages[i + 1].input_text == fake_provider.calls[i + 1][1].text

        write_prompt = fake_provider.calls[1][1].text
        assert "1000" in write_prompt
        assert "Professional" in write_prompt
        assert request_model.topic in fake_provider.calls[4][1].text

    @pytest.mark.asyncio
    async def test_editor_notes_stripped_by_default(self, fake_provider, request_model):
        result = await BlogOrchestrator(fake_provider).run(request_model)

        edit = result.stage(Stage.EDIT)
        assert edit.output_text == "EDITED"
        assert "fixed typos" not in fake_provider.calls[3][1].text

    @pytest.mark.asyncio
    async def test_editor_notes_kept_when_disabled(self, fake_provider, request_model):
        result = await BlogOrchestrator(fake_provider, strip_editor_notes=False).run(
            request_model
        )

        edit = result.stage(Stage.EDIT)
        assert "EDITOR NOTES:" in edit.output_text
        assert "fixed typos" in fake_provider.calls[3][1].text

    @pytest.mark.asyncio
    async def test_blog_result_from_lint_and_seo(self, fake_provider, request_model):
        result = await BlogOrchestrator(fake_provider).run(request_model)

        assert result.blog.content == result.stage(Stage.LINT).output_text
        assert result.blog.title == "Secrets Stay Secret"
        assert result.blog.tags == ("PowerShell", "Security")
        assert result.seo_raw == result.stage(Stage.SEO).output_text
        assert result.provider_name == "Fake"
        assert [r.completion_id for r in result.stages] == [f"fake-{i}" for i in range(5)]
        assert result.stats()["stages"][0]["completion_id"] == "fake-0"

    @pytest.mark.asyncio
    async def test_none_text_treated_as_empty(self, request_model):
        provider = FakeProvider(replies=["outline", "draft", "edited", None, None])

        result = await BlogOrchestrator(provider, fallback_title="Fallback").run(request_model)

        assert result.blog.content == ""
        assert result.blog.title == "Fallback"
        assert result.blog.tags == ()

    @pytest.mark.asyncio
    async def test_total_elapsed_covers_stages(self, fake_provider, request_model):
        result = await BlogOrchestrator(fake_provider).run(request_model)

        assert all(r.elapsed_ns >= 0 for r in result.stages)
        assert result.total_elapsed_ns >= sum(r.elapsed_ns for r in result.stages)

    @pytest.mark.asyncio
    async def test_options_passed_to_every_call(self, fake_provider, request_model):
        options = GenerationOptions(temperature=0.2)

        await BlogOrchestrator(fake_provider, options=options).run(request_model)

        assert fake_provider.options == [options] * 5

    @pytest.mark.asyncio
    async def test_usage_accumulated_per_stage(self, request_model):
        provider = FakeProvider(usage=UsageData(input_tokens=10, output_tokens=5, total_tokens=15))

        result = await BlogOrchestrator(provider).run(request_model)

        assert result.costs.total_tokens() == (50, 25)
        assert set(result.costs.steps) == {s.value for s in Stage}

    @pytest.mark.asyncio
    async def test_callbacks_fire_per_stage(self, fake_provider, request_model):
        started, completed = [], []

        await BlogOrchestrator(
            fake_provider,
            on_stage_start=started.append,
            on_stage_complete=lambda record: completed.append(record.stage),
        ).run(request_model)

        assert started == list(Stage)
        assert completed == list(Stage)


# ---------------------------------------------------------------------------
# Failure and cancellation
# ---------------------------------------------------------------------------


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_stops_pipeline(self, request_model):
        """A failing Edit call aborts the run; Lint and SEO never run."""
        provider = FakeProvider(fail_at=2)

        with pytest.raises(StageFailedError) as exc_info:
            await BlogOrchestrator(provider).run(request_model)

        err = exc_info.value
        assert err.stage is Stage.EDIT
        assert isinstance(err.__cause__, TransportError)
        assert err.__cause__.status_code == 503
        assert [r.stage for r in err.completed_stages] == [Stage.RESEARCH, Stage.WRITE]
        assert err.elapsed_ns >= 0
        assert len(provider.calls) == 3

    @pytest.mark.asyncio
    async def test_failure_at_research(self, request_model):
        provider = FakeProvider(fail_at=0)

        with pytest.raises(StageFailedError) as exc_info:
            await BlogOrchestrator(provider).run(request_model)

        assert exc_info.value.stage is Stage.RESEARCH
        assert exc_info.value.completed_stages == ()
        assert "research" in str(exc_info.value)


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_write(self, request_model):
        provider = FakeProvider(block_at=1)
        cancel_event = asyncio.Event()

        run = asyncio.ensure_future(
            BlogOrchestrator(provider).run(request_model, cancel_event=cancel_event)
        )
        await asyncio.wait_for(provider.started.wait(), timeout=5)
        cancel_event.set()

        with pytest.raises(PipelineCancelledError) as exc_info:
            await asyncio.wait_for(run, timeout=5)

        err = exc_info.value
        assert err.stage is Stage.WRITE
        assert [r.stage for r in err.completed_stages] == [Stage.RESEARCH]
        assert provider.was_cancelled
        assert len(provider.calls) == 2
        assert str(err) == "Cancelled at Write"

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, fake_provider, request_model):
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(PipelineCancelledError) as exc_info:
            await BlogOrchestrator(fake_provider).run(request_model, cancel_event=cancel_event)

        assert exc_info.value.stage is Stage.RESEARCH
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_unset_event_does_not_interfere(self, fake_provider, request_model):
        result = await BlogOrchestrator(fake_provider).run(
            request_model, cancel_event=asyncio.Event()
        )

        assert len(result.stages) == 5

    @pytest.mark.asyncio
    async def test_outer_task_cancellation_propagates(self, request_model):
        provider = FakeProvider(block_at=0)
        run = asyncio.ensure_future(BlogOrchestrator(provider).run(request_model))
        await asyncio.wait_for(provider.started.wait(), timeout=5)

        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run
        assert provider.was_cancelled
