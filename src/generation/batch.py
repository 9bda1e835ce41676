"""Content calendar and sequential batch generation.

Pending calendar items are processed one at a time, highest priority first,
with a fixed delay between items. Each item moves
pending -> generating -> review | published, or back to pending on failure.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from seoforge.generation.models import GenerationRequest
from seoforge.generation.pipeline import PublishPipeline
from seoforge.scoring.models import SearchIntent
from seoforge.shared.errors import PipelineReport

logger = logging.getLogger(__name__)

BATCH_LOG_FILENAME = "batch-log.json"
BATCH_LOG_LIMIT = 100
DEFAULT_AUDIENCE = "business professionals"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class CalendarStatus(StrEnum):
    PENDING = "pending"
    GENERATING = "generating"
    REVIEW = "review"
    PUBLISHED = "published"


class CalendarItem(BaseModel):
    """One planned article. Items are identified by keyword."""

    model_config = {"populate_by_name": True}

    topic: str
    keyword: str
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    audience: str | None = None
    priority: Priority = Priority.MEDIUM
    scheduled_date: str | None = Field(default=None, alias="scheduledDate")
    status: CalendarStatus = CalendarStatus.PENDING
    location: str | None = None
    template_id: str | None = Field(default=None, alias="templateId")

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            topic=self.topic,
            keyword=self.keyword,
            intent=self.intent,
            audience=self.audience or DEFAULT_AUDIENCE,
            template_id=self.template_id,
            location=self.location,
        )


SAMPLE_CALENDAR: list[CalendarItem] = [
    CalendarItem(
        topic="AI Lead Nurturing",
        keyword="ai lead nurturing automation",
        intent=SearchIntent.INFORMATIONAL,
        audience="real estate professionals",
        priority=Priority.HIGH,
    ),
    CalendarItem(
        topic="CRM Automation",
        keyword="crm automation for small business",
        intent=SearchIntent.COMMERCIAL,
        audience="small business owners",
        priority=Priority.HIGH,
    ),
    CalendarItem(
        topic="Email Marketing Automation",
        keyword="automated email marketing workflows",
        intent=SearchIntent.INFORMATIONAL,
        audience="marketing professionals",
        priority=Priority.MEDIUM,
    ),
    CalendarItem(
        topic="Sales Pipeline Automation",
        keyword="sales pipeline automation tools",
        intent=SearchIntent.TRANSACTIONAL,
        audience="sales teams",
        priority=Priority.MEDIUM,
    ),
    CalendarItem(
        topic="Customer Onboarding Automation",
        keyword="automated customer onboarding",
        intent=SearchIntent.INFORMATIONAL,
        audience="SaaS companies",
        priority=Priority.LOW,
    ),
]


def save_calendar(items: list[CalendarItem], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in items]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_calendar(path: Path) -> list[CalendarItem]:
    """Load the calendar, creating the sample calendar when none exists.

    A corrupt calendar yields an empty list and is left on disk untouched.
    """
    if not path.exists():
        logger.info("No content calendar at %s, creating a sample", path)
        items = [item.model_copy() for item in SAMPLE_CALENDAR]
        save_calendar(items, path)
        return items
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return [CalendarItem.model_validate(entry) for entry in data]
    except (json.JSONDecodeError, ValidationError, TypeError):
        logger.warning("Corrupt content calendar at %s, nothing to process", path)
        return []


def pending_items(items: list[CalendarItem], limit: int) -> list[CalendarItem]:
    """Pending items by priority (stable within a priority), capped at ``limit``."""
    pending = [item for item in items if item.status == CalendarStatus.PENDING]
    pending.sort(key=lambda item: PRIORITY_ORDER[item.priority])
    return pending[:limit]


# ---------------------------------------------------------------------------
# Batch log
# ---------------------------------------------------------------------------


class BatchItemResult(BaseModel):
    topic: str
    keyword: str
    success: bool
    slug: str | None = None
    score: float | None = None
    path: str | None = None
    status: CalendarStatus = CalendarStatus.PENDING
    error: str | None = None
    error_type: str | None = None


class BatchLogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    results: list[BatchItemResult] = Field(default_factory=list)


def load_batch_log(state_dir: Path) -> list[BatchLogEntry]:
    log_path = state_dir / BATCH_LOG_FILENAME
    if not log_path.exists():
        return []
    try:
        data = json.loads(log_path.read_text(encoding="utf-8"))
        return [BatchLogEntry.model_validate(entry) for entry in data]
    except (json.JSONDecodeError, ValidationError, TypeError):
        logger.warning("Corrupt batch log at %s, starting fresh", log_path)
        return []


def append_batch_log(entry: BatchLogEntry, state_dir: Path) -> None:
    """Prepend ``entry`` and keep the newest ``BATCH_LOG_LIMIT`` entries."""
    entries = [entry, *load_batch_log(state_dir)][:BATCH_LOG_LIMIT]
    log_path = state_dir / BATCH_LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.write_text(
        json.dumps([e.model_dump(mode="json") for e in entries], indent=2), encoding="utf-8"
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class BatchRunner:
    """Drives pending calendar items through a ``PublishPipeline``."""

    def __init__(
        self,
        pipeline: PublishPipeline,
        calendar_path: Path,
        *,
        max_items: int | None = None,
        delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        batch = pipeline.config.batch
        self.pipeline = pipeline
        self.calendar_path = calendar_path
        self.max_items = batch.max_items_per_run if max_items is None else max_items
        self.delay_seconds = batch.delay_seconds if delay_seconds is None else delay_seconds
        self.sleep = sleep

    def run(self, report: PipelineReport | None = None) -> BatchLogEntry:
        """Process up to ``max_items`` pending items and append a batch log entry."""
        calendar = load_calendar(self.calendar_path)
        queue = pending_items(calendar, self.max_items)
        entry = BatchLogEntry()

        if not queue:
            logger.info("No pending items in %s", self.calendar_path)
            return entry

        logger.info("Processing %d pending calendar items", len(queue))
        for index, item in enumerate(queue):
            logger.info("[%d/%d] Generating: %s", index + 1, len(queue), item.topic)
            result = self._process(calendar, item, report)
            entry.results.append(result)
            if index < len(queue) - 1 and self.delay_seconds > 0:
                self.sleep(self.delay_seconds)

        entry.total_processed = len(entry.results)
        entry.successful = sum(1 for r in entry.results if r.success)
        entry.failed = entry.total_processed - entry.successful
        append_batch_log(entry, self.pipeline.config.state_dir)
        logger.info(
            "Batch complete: %d successful, %d failed", entry.successful, entry.failed
        )
        return entry

    def _set_status(
        self, calendar: list[CalendarItem], keyword: str, status: CalendarStatus
    ) -> None:
        for item in calendar:
            if item.keyword == keyword:
                item.status = status
        save_calendar(calendar, self.calendar_path)

    def _process(
        self,
        calendar: list[CalendarItem],
        item: CalendarItem,
        report: PipelineReport | None,
    ) -> BatchItemResult:
        self._set_status(calendar, item.keyword, CalendarStatus.GENERATING)
        try:
            outcome = self.pipeline.run(item.to_request())
        except Exception as exc:
            logger.warning("Generation failed for %s", item.topic, exc_info=True)
            self._set_status(calendar, item.keyword, CalendarStatus.PENDING)
            if report:
                report.add_error(
                    "batch", str(exc), source=item.keyword, error_type=type(exc).__name__
                )
            return BatchItemResult(
                topic=item.topic,
                keyword=item.keyword,
                success=False,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        if not outcome.ok:
            self._set_status(calendar, item.keyword, CalendarStatus.PENDING)
            error = outcome.result.error or "generation did not finalize"
            if report:
                report.add_error(
                    "batch",
                    error,
                    source=item.keyword,
                    error_type=outcome.result.error_type or "",
                )
            return BatchItemResult(
                topic=item.topic,
                keyword=item.keyword,
                success=False,
                error=error,
                error_type=outcome.result.error_type,
            )

        status = CalendarStatus.PUBLISHED if outcome.published else CalendarStatus.REVIEW
        self._set_status(calendar, item.keyword, status)
        article = outcome.result.article
        if report:
            for warning in outcome.warnings:
                report.add_warning(f"{item.keyword}: {warning}")
        logger.info("Success! Score: %.1f%%", article.uniqueness_score * 100)
        return BatchItemResult(
            topic=item.topic,
            keyword=item.keyword,
            success=True,
            slug=article.slug,
            score=article.uniqueness_score,
            path=str(outcome.path),
            status=status,
        )
