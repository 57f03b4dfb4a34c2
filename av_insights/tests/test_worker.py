"""
Tests for the classification worker entry point.
"""

import json
from unittest.mock import patch

import pytest

from av_insights import worker
from av_insights.database import AIStatus

from conftest import make_row


class TestRunOnce:

    @pytest.mark.asyncio
    async def test_classifies_batch(self, test_db, source_id, mock_provider):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        mock_provider.queue_response(json.dumps({
            "av_relevance": True,
            "relevance_score": 0.95,
            "summary": ["a", "b", "c"],
            "companies": ["Waymo"],
            "category": "business",
            "sentiment": "neutral",
            "impact": "low",
            "regulatory_relevance": False,
            "themes": [],
        }))

        result = await worker.run_once(db=test_db, provider=mock_provider)

        assert result.done == 1
        assert test_db.articles.get_by_url("https://x.com/1").ai_status == AIStatus.DONE

    @pytest.mark.asyncio
    async def test_no_provider_is_fatal_before_claiming(self, test_db, source_id):
        test_db.upsert_articles([make_row(source_id, "https://x.com/1")])

        with patch.object(worker, "build_provider", return_value=None):
            with pytest.raises(RuntimeError, match="No LLM API key"):
                await worker.run_once(db=test_db)

        assert test_db.articles.get_by_url("https://x.com/1").ai_status == AIStatus.PENDING


class TestMain:

    def test_exit_code_one_on_fatal_error(self):
        with patch.object(worker, "configure_logging"), \
             patch.object(worker, "build_provider", return_value=None):
            assert worker.main() == 1

    def test_exit_code_zero_on_success(self, test_db, mock_provider):
        with patch.object(worker, "configure_logging"), \
             patch.object(worker, "build_provider", return_value=mock_provider), \
             patch.object(worker, "Database", return_value=test_db):
            assert worker.main() == 0
