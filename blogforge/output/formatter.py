"""Output formatting for pipeline results.

Writes the finished post as a dated Jekyll-style markdown file, plus the
raw SEO reply and a timing/cost run log next to it.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..agents.orchestrator import PipelineResult
from ..models import BlogResult


class OutputFormatter:
    """Formats and saves pipeline output."""

    def __init__(
        self,
        output_dir: Path,
        seo_sidecar_name: str = "blog-seo-data.json",
        default_author: str = "",
        image: str = "img/banner.jpg",
    ):
        """
        Initialize formatter.

        Args:
            output_dir: Directory the post and sidecar files are written to
            seo_sidecar_name: Filename for the raw SEO reply
            default_author: Author used when the request names none
            image: Banner image path for the front matter
        """
        self.output_dir = Path(output_dir)
        self.seo_sidecar_name = seo_sidecar_name
        self.default_author = default_author
        self.image = image

    @staticmethod
    def slugify(title: str) -> str:
        """Filesystem-safe slug: lowercase, dashes for spaces and slashes."""
        slug = title.strip().replace(" ", "-").replace("/", "-").replace("\\", "-")
        slug = slug.replace(":", "").replace("?", "")
        return slug.lower()

    def build_filename(self, title: str, now: datetime) -> str:
        """Return YYYY-MM-DD-{slug}.md."""
        return f"{now:%Y-%m-%d}-{self.slugify(title)}.md"

    @staticmethod
    def _format_date(now: datetime) -> str:
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def format_markdown(
        self,
        result: BlogResult,
        author: Optional[str],
        now: datetime,
    ) -> str:
        """Format the post with front matter, summary heading and body."""
        tags = ", ".join(json.dumps(tag, ensure_ascii=False) for tag in result.tags)
        author = author if author is not None else self.default_author
        front_matter = "\n".join(
            [
                "---",
                "layout: post",
                f"title: {json.dumps(result.title, ensure_ascii=False)}",
                f"image: {self.image}",
                f"author: {json.dumps(author, ensure_ascii=False)}",
                f"date: {self._format_date(now)}",
                f"tags: [{tags}]",
                "draft: false",
                "---",
            ]
        )

        parts = [front_matter]
        if result.summary:
            parts.append(f"## {result.summary}")
        parts.append(result.content)
        return "\n\n".join(parts) + "\n"

    def format_run_log(self, result: PipelineResult) -> dict:
        """Format timing, cost and metadata for the run log."""
        blog = result.blog
        return {
            "title": blog.title,
            "meta_description": blog.meta_description,
            "summary": blog.summary,
            "tags": list(blog.tags),
            "content_chars": len(blog.content),
            **result.stats(),
        }

    def save(
        self,
        result: PipelineResult,
        author: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Path:
        """
        Save complete run output.

        Creates:
        - YYYY-MM-DD-{slug}.md: The post with front matter
        - the SEO sidecar: Raw SEO stage output
        - YYYY-MM-DD-{slug}.run.json: Timing and cost log

        Returns:
            Path to the markdown file
        """
        now = now or datetime.now(timezone.utc)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        post_path = self.output_dir / self.build_filename(result.blog.title, now)
        post_path.write_text(
            self.format_markdown(result.blog, author, now), encoding="utf-8"
        )

        (self.output_dir / self.seo_sidecar_name).write_text(result.seo_raw, encoding="utf-8")

        run_log = self.format_run_log(result)
        post_path.with_suffix(".run.json").write_text(
            json.dumps(run_log, indent=2, default=str), encoding="utf-8"
        )

        return post_path
