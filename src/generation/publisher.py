"""Markdown artifact writer.

Writes one ``<date>-<slug>.md`` per finalized article: a frontmatter header
followed by the body. Every document carries the registry's content marker
so ``sync`` picks up everything this tool writes.
"""

from __future__ import annotations

import logging
from pathlib import Path

from seoforge.generation.models import GeneratedArticle

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR = "Content Team"
MAX_TAGS = 4


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class MarkdownPublisher:
    """Formats and writes finalized articles as markdown files."""

    def __init__(self, *, author: str = DEFAULT_AUTHOR, content_marker: str = "") -> None:
        self.author = author
        self.content_marker = content_marker

    def output_path(self, output_dir: Path, article: GeneratedArticle) -> Path:
        date_str = article.generated_at.strftime("%Y-%m-%d")
        return output_dir / f"{date_str}-{article.slug}.md"

    def format_article(
        self,
        article: GeneratedArticle,
        *,
        draft: bool = True,
        template_id: str | None = None,
        location: str | None = None,
        cover_photo_url: str | None = None,
    ) -> str:
        return (
            self._frontmatter(
                article,
                draft=draft,
                template_id=template_id,
                location=location,
                cover_photo_url=cover_photo_url,
            )
            + article.content.rstrip()
            + "\n"
        )

    def write(
        self,
        article: GeneratedArticle,
        output_dir: Path,
        *,
        draft: bool = True,
        template_id: str | None = None,
        location: str | None = None,
        cover_photo_url: str | None = None,
    ) -> Path:
        """Write the article and return its path. Overwrites an existing file."""
        path = self.output_path(output_dir, article)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            self.format_article(
                article,
                draft=draft,
                template_id=template_id,
                location=location,
                cover_photo_url=cover_photo_url,
            ),
            encoding="utf-8",
        )
        logger.info("Wrote %s (%d words)", path, article.word_count)
        return path

    def _frontmatter(
        self,
        article: GeneratedArticle,
        *,
        draft: bool,
        template_id: str | None,
        location: str | None,
        cover_photo_url: str | None,
    ) -> str:
        brief = article.brief
        topic_words = brief.topic.lower().split()

        lines: list[str] = ["---"]
        lines.append(f"title: {_quote(article.title)}")
        lines.append(f"description: {_quote(article.meta_description)}")
        lines.append(f"date: {article.generated_at.strftime('%Y-%m-%d')}")
        lines.append(f"author: {_quote(self.author)}")
        lines.append("tags:")
        for tag in topic_words[:MAX_TAGS]:
            lines.append(f"  - {tag}")
        lines.append(f"slug: {article.slug}")
        lines.append(f"category: {_quote(topic_words[0] if topic_words else 'general')}")
        lines.append(f"draft: {'true' if draft else 'false'}")
        if location:
            lines.append(f"location: {_quote(location)}")
        if self.content_marker:
            lines.append(f"contentType: {self.content_marker}")
        if cover_photo_url:
            lines.append(f"featuredImage: {_quote(cover_photo_url)}")
        lines.append("autoGenerated: true")
        lines.append(f"generatedBy: {_quote(article.generated_by)}")
        lines.append(f"templateType: {_quote(template_id or 'default')}")
        lines.append(f"contentAngle: {_quote(brief.content_angle)}")
        lines.append(f"contentHash: {article.content_hash}")
        lines.append(f"uniquenessScore: {article.uniqueness_score:.2f}")
        lines.append(f"qualityScore: {article.quality_score:.2f}")
        if article.faq_items:
            lines.append("faqItems:")
            for item in article.faq_items:
                lines.append(f"  - question: {_quote(item.question)}")
                lines.append(f"    answer: {_quote(item.answer)}")
        lines.append("---")
        lines.append("")
        return "\n".join(lines)
