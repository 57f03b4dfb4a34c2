"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AIStatus(str, Enum):
    """Classification state of an article.

    pending -> processing -> done | skipped | error. Nothing moves back to
    pending except an explicit requeue.
    """
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    SKIPPED = "skipped"
    ERROR = "error"


TERMINAL_STATUSES = (AIStatus.DONE, AIStatus.SKIPPED, AIStatus.ERROR)


@dataclass
class ArticleRow:
    """Ingestion-owned article columns, as written by the feed ingester."""
    source_id: int
    url: str
    title: str
    published_at: str | None
    author: str | None
    raw_content: str | None
    cleaned_content: str | None


@dataclass
class DBArticle:
    id: int
    source_id: int | None
    url: str
    title: str
    published_at: datetime | None
    author: str | None
    raw_content: str | None
    cleaned_content: str | None
    ai_status: AIStatus
    ai_started_at: datetime | None = None
    ai_processed_at: datetime | None = None
    ai_error: str | None = None
    ai_skipped_reason: str | None = None
    ai_av_relevance: bool | None = None
    ai_relevance_score: float | None = None
    ai_summary: list[str] = field(default_factory=list)
    ai_companies: list[str] = field(default_factory=list)
    ai_category: str | None = None
    ai_sentiment: str | None = None
    ai_impact: str | None = None
    ai_regulatory_relevance: bool | None = None
    ai_themes: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class DBSource:
    id: int
    name: str
    url: str
    type: str
    active: bool


@dataclass
class DBIngestionLog:
    id: int
    source_id: int | None
    status: str
    message: str | None
    meta: dict | None
    created_at: datetime | None
