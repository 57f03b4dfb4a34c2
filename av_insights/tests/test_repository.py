"""
Tests for the SQLite repositories.
"""

import sqlite3

import pytest

from av_insights.database import AIStatus, Database
from av_insights.exceptions import StoreError

from conftest import make_row


def _classification(**overrides) -> dict:
    fields = {
        "av_relevance": True,
        "relevance_score": 0.9,
        "summary": ["One", "Two", "Three"],
        "companies": ["Waymo"],
        "category": "business",
        "sentiment": "positive",
        "impact": "medium",
        "regulatory_relevance": False,
        "themes": ["expansion"],
    }
    fields.update(overrides)
    return fields


class TestSources:

    def test_add_and_list_active(self, test_db):
        rss_id = test_db.add_source("A", "https://a.example.com/feed")
        test_db.add_source("B", "https://b.example.com/api", type="api")
        inactive_id = test_db.add_source("C", "https://c.example.com/feed")
        test_db.sources.set_active(inactive_id, False)

        active = test_db.get_active_rss_sources()

        assert [s.id for s in active] == [rss_id]

    def test_duplicate_url_rejected(self, test_db):
        test_db.add_source("A", "https://a.example.com/feed")
        with pytest.raises(StoreError):
            test_db.add_source("A again", "https://a.example.com/feed")


class TestUpsert:

    def test_new_rows_start_pending(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])

        article = test_db.articles.get_by_url("https://x.com/1")
        assert article.ai_status == AIStatus.PENDING
        assert article.source_id == source_id

    def test_reingest_is_idempotent(self, test_db, source_id):
        rows = [make_row(source_id, "https://x.com/1"), make_row(source_id, "https://x.com/2")]

        test_db.upsert_articles(rows)
        test_db.upsert_articles(rows)

        assert test_db.articles.count() == 2

    def test_reingest_refreshes_content_but_keeps_ai_state(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = test_db.claim_pending_articles(1)
        test_db.articles.save_classification(claimed.id, AIStatus.DONE, **_classification())

        test_db.upsert_articles([make_row(source_id, "https://x.com/1", title="Updated title")])

        article = test_db.get_article(claimed.id)
        assert article.title == "Updated title"
        assert article.ai_status == AIStatus.DONE
        assert article.ai_companies == ["Waymo"]

    def test_empty_batch(self, test_db):
        assert test_db.upsert_articles([]) == 0


class TestClaim:

    def test_claims_newest_first_up_to_limit(self, test_db, source_id):
        test_db.upsert_articles([
            make_row(source_id, "https://x.com/old", published_at="2025-01-01T00:00:00+00:00"),
            make_row(source_id, "https://x.com/new", published_at="2025-01-03T00:00:00+00:00"),
            make_row(source_id, "https://x.com/mid", published_at="2025-01-02T00:00:00+00:00"),
        ])

        claimed = test_db.claim_pending_articles(2)

        assert [a.url for a in claimed] == ["https://x.com/new", "https://x.com/mid"]
        assert all(a.ai_status == AIStatus.PROCESSING for a in claimed)
        assert all(a.ai_started_at is not None for a in claimed)

    def test_rows_without_cleaned_content_never_claimed(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/empty", cleaned_content=None)])

        assert test_db.claim_pending_articles(5) == []

    def test_claims_are_disjoint(self, temp_db_path, source_id, test_db):
        test_db.upsert_articles([make_row(source_id, f"https://x.com/{i}") for i in range(5)])
        other_worker = Database(temp_db_path)

        first = test_db.claim_pending_articles(3)
        second = other_worker.claim_pending_articles(3)

        first_ids = {a.id for a in first}
        second_ids = {a.id for a in second}
        assert len(first_ids) == 3
        assert len(second_ids) == 2
        assert first_ids.isdisjoint(second_ids)

    def test_row_claimed_between_select_and_update_is_dropped(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        article = test_db.articles.get_by_url("https://x.com/1")

        # Another worker claims it first
        with sqlite3.connect(test_db.db_path) as conn:
            conn.execute("UPDATE articles SET ai_status = 'processing' WHERE id = ?", (article.id,))

        assert test_db.claim_pending_articles(1) == []


class TestClassificationWrites:

    def test_save_requires_processing(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        article = test_db.articles.get_by_url("https://x.com/1")

        with pytest.raises(StoreError):
            test_db.articles.save_classification(article.id, AIStatus.DONE, **_classification())

    def test_save_skipped_with_reason(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = test_db.claim_pending_articles(1)

        test_db.articles.save_classification(
            claimed.id, AIStatus.SKIPPED,
            skipped_reason="Model: not AV relevant",
            **_classification(av_relevance=False, relevance_score=0.1),
        )

        article = test_db.get_article(claimed.id)
        assert article.ai_status == AIStatus.SKIPPED
        assert article.ai_skipped_reason == "Model: not AV relevant"
        assert article.ai_av_relevance is False
        assert article.ai_processed_at is not None

    def test_mark_error_truncates_message(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = test_db.claim_pending_articles(1)

        assert test_db.mark_article_error(claimed.id, "x" * 800) is True

        article = test_db.get_article(claimed.id)
        assert article.ai_status == AIStatus.ERROR
        assert len(article.ai_error) == 500

    def test_terminal_rows_are_not_overwritten(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = test_db.claim_pending_articles(1)
        test_db.articles.save_classification(claimed.id, AIStatus.DONE, **_classification())

        assert test_db.mark_article_error(claimed.id, "late failure") is False
        assert test_db.get_article(claimed.id).ai_status == AIStatus.DONE

    def test_requeue_errors(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = test_db.claim_pending_articles(1)
        test_db.mark_article_error(claimed.id, "boom")

        assert test_db.requeue_articles() == 1

        article = test_db.get_article(claimed.id)
        assert article.ai_status == AIStatus.PENDING
        assert article.ai_error is None
        assert test_db.get_status_counts()["pending"] == 1


class TestIngestionLogs:

    def test_add_and_read_back(self, test_db, source_id):
        test_db.log_ingestion(source_id, "started", "Starting RSS fetch")
        test_db.log_ingestion(source_id, "fetched", "Fetched 3 items", {"itemCount": 3})

        logs = test_db.ingestion_logs.get_recent(source_id)

        assert [log.status for log in logs] == ["fetched", "started"]
        assert logs[0].meta == {"itemCount": 3}
