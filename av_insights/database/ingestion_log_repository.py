"""
Ingestion log repository - append-only audit trail of ingestion phases.
"""

import json

from .connection import DatabaseConnection
from .converters import row_to_ingestion_log
from .models import DBIngestionLog


class IngestionLogRepository:
    """Repository for ingestion audit entries."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(
        self,
        source_id: int | None,
        status: str,
        message: str | None = None,
        meta: dict | None = None,
    ) -> int:
        """Append an entry. Returns entry ID."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "INSERT INTO ingestion_logs (source_id, status, message, meta) VALUES (?, ?, ?, ?)",
                (source_id, status, message, json.dumps(meta) if meta is not None else None)
            )
            return cursor.lastrowid

    def get_recent(self, source_id: int | None = None, limit: int = 50) -> list[DBIngestionLog]:
        """Most recent entries first, optionally for one source."""
        query = "SELECT * FROM ingestion_logs"
        params: list = []
        if source_id is not None:
            query += " WHERE source_id = ?"
            params.append(source_id)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        with self._db.conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_ingestion_log(row) for row in rows]
