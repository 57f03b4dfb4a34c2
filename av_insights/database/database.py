"""
Database facade - provides unified access to all repositories.
"""

from pathlib import Path

from .connection import DatabaseConnection
from .article_repository import ArticleRepository
from .source_repository import SourceRepository
from .ingestion_log_repository import IngestionLogRepository
from .models import AIStatus, ArticleRow, DBArticle, DBSource


class Database:
    """
    Unified database access facade.

    Ingester, worker and CLI all open their own Database on the same file.
    """

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        self.articles = ArticleRepository(self._connection)
        self.sources = SourceRepository(self._connection)
        self.ingestion_logs = IngestionLogRepository(self._connection)

    @property
    def db_path(self) -> Path:
        return self._connection.db_path

    # ─────────────────────────────────────────────────────────────
    # Source operations (delegated to SourceRepository)
    # ─────────────────────────────────────────────────────────────

    def add_source(self, name: str, url: str, type: str = "rss") -> int:
        return self.sources.add(name, url, type)

    def get_sources(self) -> list[DBSource]:
        return self.sources.get_all()

    def get_active_rss_sources(self) -> list[DBSource]:
        return self.sources.get_active("rss")

    # ─────────────────────────────────────────────────────────────
    # Article operations (delegated to ArticleRepository)
    # ─────────────────────────────────────────────────────────────

    def upsert_articles(self, rows: list[ArticleRow]) -> int:
        return self.articles.upsert_many(rows)

    def get_article(self, article_id: int) -> DBArticle | None:
        return self.articles.get(article_id)

    def claim_pending_articles(self, limit: int) -> list[DBArticle]:
        return self.articles.claim_pending(limit)

    def mark_article_error(self, article_id: int, message: str) -> bool:
        return self.articles.mark_error(article_id, message)

    def requeue_articles(self, status: AIStatus = AIStatus.ERROR) -> int:
        return self.articles.requeue(status)

    def get_status_counts(self) -> dict[str, int]:
        return self.articles.count_by_status()

    # ─────────────────────────────────────────────────────────────
    # Audit (delegated to IngestionLogRepository)
    # ─────────────────────────────────────────────────────────────

    def log_ingestion(
        self,
        source_id: int | None,
        status: str,
        message: str | None = None,
        meta: dict | None = None,
    ) -> int:
        return self.ingestion_logs.add(source_id, status, message, meta)
