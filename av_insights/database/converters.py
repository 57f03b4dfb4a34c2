"""
Database row converters - convert SQLite rows to dataclasses.
"""

import json
import sqlite3
from datetime import datetime

from .models import AIStatus, DBArticle, DBIngestionLog, DBSource


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_json_list(value: str | None) -> list[str]:
    if not value:
        return []
    try:
        data = json.loads(value)
    except json.JSONDecodeError:
        return []
    return data if isinstance(data, list) else []


def _parse_bool(value) -> bool | None:
    return None if value is None else bool(value)


def row_to_article(row: sqlite3.Row) -> DBArticle:
    """Convert a database row to a DBArticle."""
    return DBArticle(
        id=row["id"],
        source_id=row["source_id"],
        url=row["url"],
        title=row["title"],
        published_at=_parse_datetime(row["published_at"]),
        author=row["author"],
        raw_content=row["raw_content"],
        cleaned_content=row["cleaned_content"],
        ai_status=AIStatus(row["ai_status"]),
        ai_started_at=_parse_datetime(row["ai_started_at"]),
        ai_processed_at=_parse_datetime(row["ai_processed_at"]),
        ai_error=row["ai_error"],
        ai_skipped_reason=row["ai_skipped_reason"],
        ai_av_relevance=_parse_bool(row["ai_av_relevance"]),
        ai_relevance_score=row["ai_relevance_score"],
        ai_summary=_parse_json_list(row["ai_summary"]),
        ai_companies=_parse_json_list(row["ai_companies"]),
        ai_category=row["ai_category"],
        ai_sentiment=row["ai_sentiment"],
        ai_impact=row["ai_impact"],
        ai_regulatory_relevance=_parse_bool(row["ai_regulatory_relevance"]),
        ai_themes=_parse_json_list(row["ai_themes"]),
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def row_to_source(row: sqlite3.Row) -> DBSource:
    """Convert a database row to a DBSource."""
    return DBSource(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        type=row["type"],
        active=bool(row["active"]),
    )


def row_to_ingestion_log(row: sqlite3.Row) -> DBIngestionLog:
    """Convert a database row to a DBIngestionLog."""
    meta = None
    if row["meta"]:
        try:
            meta = json.loads(row["meta"])
        except json.JSONDecodeError:
            pass

    return DBIngestionLog(
        id=row["id"],
        source_id=row["source_id"],
        status=row["status"],
        message=row["message"],
        meta=meta,
        created_at=_parse_datetime(row["created_at"]),
    )
