#!/usr/bin/env python3
"""
Multi-Stage Blog Post Generation Pipeline

Entry point for blogforge.
Researches, writes, edits, lints and SEO-tags a blog post with one LLM
provider, then saves it as a dated markdown file.

Usage:
    python -m blogforge.main request.json             # Request from a JSON file
    python -m blogforge.main -t "Topic" -w 1200       # Request from flags
    python -m blogforge.main                          # request.json in cwd, config, or prompts
    python -m blogforge.main --keep-editor-notes      # Forward the editor's notes to Lint
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from .agents.orchestrator import BlogOrchestrator, PipelineResult
from .config.settings import Settings, settings
from .errors import (
    ConfigurationError,
    PipelineCancelledError,
    RequestValidationError,
    StageFailedError,
)
from .io.request_source import RequestSource
from .models import PipelineStageRecord, Stage
from .output.formatter import OutputFormatter
from .providers.selector import select_provider
from .utils.timing import format_elapsed


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Multi-stage LLM blog post generation pipeline"
    )

    parser.add_argument(
        "request_file",
        nargs="?",
        help="JSON file with the blog request (topic, description, targetAudience, wordCount, tone)",
    )
    parser.add_argument("--topic", "-t", help="Blog topic")
    parser.add_argument("--description", "-d", help="What the post should focus on")
    parser.add_argument("--audience", "-a", help="Target audience (default: General)")
    parser.add_argument(
        "--wordcount",
        "-w",
        type=int,
        help="Target word count (default: 800)",
    )
    parser.add_argument("--tone", help="Writing tone (default: Professional)")
    parser.add_argument("--author", help="Author for the front matter")

    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the generated files (default: OUTPUT_DIR setting)",
    )
    parser.add_argument(
        "--keep-editor-notes",
        action="store_true",
        help="Forward the Edit stage output to Lint without stripping editor notes",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: LOG_LEVEL setting)",
    )

    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    """Configure root logging once for the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _on_stage_start(stage: Stage) -> None:
    icons = {
        Stage.RESEARCH: "🔍",
        Stage.WRITE: "✍️",
        Stage.EDIT: "📝",
        Stage.LINT: "🧹",
        Stage.SEO: "🎯",
    }
    step = list(Stage).index(stage) + 1
    print(f"{icons[stage]} Step {step}: {stage.label}...")


def _on_stage_complete(record: PipelineStageRecord) -> None:
    print(f"✅ {record.stage.label} completed in {format_elapsed(record.elapsed_ns)}.\n")


def print_summary(result: PipelineResult, output_path: Path, sidecar: Path) -> None:
    """Print the run summary with per-stage timings."""
    print("🎉 Blog generation completed!")
    print(f"📄 Content saved to: {output_path}")
    print(f"🎯 SEO data saved to: {sidecar}")
    print(f"📰 Title: {result.blog.title}")
    print(f"📊 Final content length: {len(result.blog.content)} characters")
    print(f"⏱️ Total time: {format_elapsed(result.total_elapsed_ns)}")
    for record in result.stages:
        print(f"   └─ {record.stage.label}: {format_elapsed(record.elapsed_ns)}")

    input_tokens, output_tokens = result.costs.total_tokens()
    if input_tokens or output_tokens:
        print(
            f"💰 Tokens: {input_tokens} in / {output_tokens} out "
            f"(est. ${result.costs.total_cost():.4f})"
        )


def _install_cancel_handler(cancel_event: asyncio.Event) -> bool:
    """Make Ctrl-C request cancellation of the in-flight stage."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        # No loop signal handlers on this platform; Ctrl-C raises KeyboardInterrupt
        return False
    return True


async def main(argv: Optional[list[str]] = None, config: Optional[Settings] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = config or settings
    configure_logging(args.log_level or config.log_level)

    print("=" * 60)
    print("🚀 blogforge: Blog Post Generator")
    print("=" * 60)

    try:
        provider = select_provider(config)
    except ConfigurationError as e:
        print(f"❌ {e}")
        for name in e.providers_checked:
            print(f"   - {name}")
        return 1

    print(f"Provider: {provider.name} ({provider.model_id})")

    try:
        request = RequestSource(config).resolve(args)
    except RequestValidationError as e:
        print(f"❌ {e}")
        return 1

    print(f"Topic: {request.topic}")
    if request.description:
        print(f"Description: {request.description}")
    print("-" * 50)

    orchestrator = BlogOrchestrator(
        provider,
        options=config.generation_options(),
        strip_editor_notes=config.strip_editor_notes and not args.keep_editor_notes,
        tag_keys=config.tag_keys,
        fallback_title=config.fallback_title,
        synthesize_summary=config.synthesize_summary,
        on_stage_start=_on_stage_start,
        on_stage_complete=_on_stage_complete,
    )

    cancel_event = asyncio.Event()
    handler_installed = _install_cancel_handler(cancel_event)

    try:
        result = await orchestrator.run(request, cancel_event=cancel_event)
    except StageFailedError as e:
        print(f"❌ {e.stage.label} stage failed: {e.__cause__}")
        print(f"⏱️ Failed after {format_elapsed(e.elapsed_ns)}")
        return 1
    except PipelineCancelledError as e:
        print(f"\n🛑 {e} after {format_elapsed(e.elapsed_ns)}")
        return 130
    finally:
        if handler_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)

    formatter = OutputFormatter(
        args.output_dir or config.output_dir,
        seo_sidecar_name=config.seo_sidecar_name,
        default_author=config.default_author,
        image=config.banner_image,
    )
    output_path = formatter.save(result, author=request.author)

    print_summary(result, output_path, formatter.output_dir / formatter.seo_sidecar_name)
    return 0


def cli() -> None:
    """CLI entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
