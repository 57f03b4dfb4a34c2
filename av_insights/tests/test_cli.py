"""
Tests for the command-line entry point.
"""

from unittest.mock import patch

import pytest

from av_insights import cli
from av_insights.config import config
from av_insights.database import AIStatus, Database

from conftest import make_row


@pytest.fixture
def cli_db(temp_db_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", temp_db_path)
    with patch.object(cli, "configure_logging"):
        yield Database(temp_db_path)


class TestSources:

    def test_add_then_list(self, cli_db, capsys):
        assert cli.main(["sources", "add", "AV Daily", "https://avdaily.example.com/feed"]) == 0
        assert cli.main(["sources", "list"]) == 0

        out = capsys.readouterr().out
        assert "AV Daily" in out
        assert "active" in out

    def test_disable_unknown_source(self, cli_db):
        assert cli.main(["sources", "disable", "999"]) == 1

    def test_duplicate_add_fails_cleanly(self, cli_db):
        cli.main(["sources", "add", "A", "https://a.example.com/feed"])
        assert cli.main(["sources", "add", "A", "https://a.example.com/feed"]) == 1


class TestRequeue:

    def test_errors_back_to_pending(self, cli_db, capsys):
        source_id = cli_db.add_source("A", "https://a.example.com/feed")
        cli_db.upsert_articles([make_row(source_id, "https://x.com/1")])
        [claimed] = cli_db.claim_pending_articles(1)
        cli_db.mark_article_error(claimed.id, "boom")

        assert cli.main(["requeue"]) == 0
        assert cli_db.get_article(claimed.id).ai_status == AIStatus.PENDING

        assert cli.main(["status"]) == 0
        assert "pending\t1" in capsys.readouterr().out

    def test_pending_not_a_requeue_source(self, cli_db):
        with pytest.raises(SystemExit):
            cli.main(["requeue", "--status", "pending"])
