"""
Article repository - ingestion upserts and the classification queue.
"""

import json
from datetime import datetime, timezone

from ..exceptions import StoreError
from .connection import DatabaseConnection
from .converters import row_to_article
from .models import AIStatus, ArticleRow, DBArticle


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ArticleRepository:
    """Repository for article operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    # ─────────────────────────────────────────────────────────────
    # Ingestion
    # ─────────────────────────────────────────────────────────────

    def upsert_many(self, rows: list[ArticleRow]) -> int:
        """
        Insert or update articles keyed on URL, in one transaction.

        Only ingestion-owned columns are written, so re-ingesting a URL
        refreshes its content but never touches the ai_* columns.
        Returns the number of rows written.
        """
        if not rows:
            return 0
        now = _now()
        with self._db.conn() as conn:
            conn.executemany(
                """INSERT INTO articles
                   (source_id, url, title, published_at, author, raw_content, cleaned_content,
                    created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(url) DO UPDATE SET
                   source_id = excluded.source_id,
                   title = excluded.title,
                   published_at = excluded.published_at,
                   author = excluded.author,
                   raw_content = excluded.raw_content,
                   cleaned_content = excluded.cleaned_content,
                   updated_at = excluded.updated_at""",
                [
                    (r.source_id, r.url, r.title, r.published_at, r.author,
                     r.raw_content, r.cleaned_content, now, now)
                    for r in rows
                ]
            )
        return len(rows)

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    def get(self, article_id: int) -> DBArticle | None:
        """Get single article by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE id = ?", (article_id,)
            ).fetchone()
            return row_to_article(row) if row else None

    def get_by_url(self, url: str) -> DBArticle | None:
        """Get article by URL."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE url = ?", (url,)
            ).fetchone()
            return row_to_article(row) if row else None

    def count(self) -> int:
        with self._db.conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]

    def count_by_status(self) -> dict[str, int]:
        """Article counts per ai_status, including zero counts."""
        counts = {status.value: 0 for status in AIStatus}
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT ai_status, COUNT(*) AS n FROM articles GROUP BY ai_status"
            ).fetchall()
        for row in rows:
            counts[row["ai_status"]] = row["n"]
        return counts

    # ─────────────────────────────────────────────────────────────
    # Classification queue
    # ─────────────────────────────────────────────────────────────

    def claim_pending(self, limit: int) -> list[DBArticle]:
        """
        Claim up to `limit` pending articles for classification.

        Candidates are the newest pending rows with usable content. Each is
        moved to processing with an update that re-checks ai_status, so a row
        another worker claimed in the meantime is silently dropped. Returns
        the rows this call actually claimed, in claim order.
        """
        if limit <= 0:
            return []
        started_at = _now()
        with self._db.conn() as conn:
            candidates = conn.execute(
                """SELECT id FROM articles
                   WHERE ai_status = ? AND cleaned_content IS NOT NULL
                   ORDER BY published_at DESC NULLS LAST, id DESC
                   LIMIT ?""",
                (AIStatus.PENDING.value, limit)
            ).fetchall()

            claimed_ids = []
            for candidate in candidates:
                cursor = conn.execute(
                    """UPDATE articles SET
                       ai_status = ?, ai_started_at = ?, ai_error = NULL
                       WHERE id = ? AND ai_status = ?""",
                    (AIStatus.PROCESSING.value, started_at, candidate["id"], AIStatus.PENDING.value)
                )
                if cursor.rowcount == 1:
                    claimed_ids.append(candidate["id"])

            if not claimed_ids:
                return []

            placeholders = ",".join("?" * len(claimed_ids))
            rows = conn.execute(
                f"SELECT * FROM articles WHERE id IN ({placeholders})",
                claimed_ids
            ).fetchall()

        by_id = {row["id"]: row_to_article(row) for row in rows}
        return [by_id[i] for i in claimed_ids if i in by_id]

    def save_classification(
        self,
        article_id: int,
        status: AIStatus,
        *,
        av_relevance: bool,
        relevance_score: float,
        summary: list[str],
        companies: list[str],
        category: str,
        sentiment: str,
        impact: str,
        regulatory_relevance: bool,
        themes: list[str],
        skipped_reason: str | None = None,
    ):
        """
        Persist a classification result for a claimed article.

        Raises:
            StoreError: If the article is not currently in processing
        """
        if status not in (AIStatus.DONE, AIStatus.SKIPPED):
            raise ValueError(f"Not a classification outcome: {status}")
        with self._db.conn() as conn:
            cursor = conn.execute(
                """UPDATE articles SET
                   ai_status = ?, ai_processed_at = ?, ai_skipped_reason = ?,
                   ai_av_relevance = ?, ai_relevance_score = ?,
                   ai_summary = ?, ai_companies = ?, ai_category = ?,
                   ai_sentiment = ?, ai_impact = ?, ai_regulatory_relevance = ?,
                   ai_themes = ?
                   WHERE id = ? AND ai_status = ?""",
                (status.value, _now(), skipped_reason,
                 av_relevance, relevance_score,
                 json.dumps(summary), json.dumps(companies), category,
                 sentiment, impact, regulatory_relevance,
                 json.dumps(themes),
                 article_id, AIStatus.PROCESSING.value)
            )
            if cursor.rowcount != 1:
                raise StoreError(f"Article {article_id} is not in processing; result not saved")

    def mark_error(self, article_id: int, message: str) -> bool:
        """Record a failure on a claimed article. Returns True if a row changed."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                """UPDATE articles SET ai_status = ?, ai_processed_at = ?, ai_error = ?
                   WHERE id = ? AND ai_status = ?""",
                (AIStatus.ERROR.value, _now(), message[:500],
                 article_id, AIStatus.PROCESSING.value)
            )
            return cursor.rowcount == 1

    def requeue(self, status: AIStatus = AIStatus.ERROR) -> int:
        """
        Operator action: move articles in `status` back to pending.

        Returns count updated.
        """
        if status == AIStatus.PENDING:
            return 0
        with self._db.conn() as conn:
            cursor = conn.execute(
                """UPDATE articles SET
                   ai_status = ?, ai_started_at = NULL, ai_processed_at = NULL,
                   ai_error = NULL, ai_skipped_reason = NULL
                   WHERE ai_status = ?""",
                (AIStatus.PENDING.value, status.value)
            )
            return cursor.rowcount
