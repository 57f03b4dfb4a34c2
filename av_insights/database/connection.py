"""
Database connection management and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..exceptions import StoreError


class DatabaseConnection:
    """Manages database connection and schema."""

    # Ingester and worker run in separate processes against the same file
    BUSY_TIMEOUT_SECONDS = 30

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """
        Get database connection with row factory.

        Everything inside one block commits together; any sqlite error rolls
        the block back and surfaces as StoreError.
        """
        try:
            connection = sqlite3.connect(self.db_path, timeout=self.BUSY_TIMEOUT_SECONDS)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}") from e
        connection.row_factory = sqlite3.Row
        try:
            connection.execute("PRAGMA foreign_keys = ON")
            yield connection
            connection.commit()
        except sqlite3.Error as e:
            connection.rollback()
            raise StoreError(str(e)) from e
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.execute("PRAGMA journal_mode = WAL")
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS sources (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    url TEXT UNIQUE NOT NULL,
                    type TEXT NOT NULL DEFAULT 'rss',
                    active BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source_id INTEGER REFERENCES sources(id) ON DELETE SET NULL,
                    url TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL,
                    published_at TIMESTAMP,
                    author TEXT,
                    raw_content TEXT,
                    cleaned_content TEXT,
                    ai_status TEXT NOT NULL DEFAULT 'pending'
                        CHECK(ai_status IN ('pending', 'processing', 'done', 'skipped', 'error')),
                    ai_started_at TIMESTAMP,
                    ai_processed_at TIMESTAMP,
                    ai_error TEXT,
                    ai_skipped_reason TEXT,
                    ai_av_relevance BOOLEAN,
                    ai_relevance_score REAL,
                    ai_summary TEXT,
                    ai_companies TEXT,
                    ai_category TEXT,
                    ai_sentiment TEXT,
                    ai_impact TEXT,
                    ai_regulatory_relevance BOOLEAN,
                    ai_themes TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS ingestion_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    source_id INTEGER,
                    status TEXT NOT NULL,
                    message TEXT,
                    meta TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_articles_ai_queue ON articles(ai_status, published_at DESC);
                CREATE INDEX IF NOT EXISTS idx_articles_source ON articles(source_id);
                CREATE INDEX IF NOT EXISTS idx_sources_active ON sources(active, type);
                CREATE INDEX IF NOT EXISTS idx_ingestion_logs_source ON ingestion_logs(source_id, created_at DESC);
            """)
