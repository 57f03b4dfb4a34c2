"""
Source repository - feed sources the ingester reads from.
"""

from .connection import DatabaseConnection
from .converters import row_to_source
from .models import DBSource


class SourceRepository:
    """Repository for source operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, name: str, url: str, type: str = "rss", active: bool = True) -> int:
        """Add a new source. Returns source ID."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "INSERT INTO sources (name, url, type, active) VALUES (?, ?, ?, ?)",
                (name, url, type, active)
            )
            return cursor.lastrowid

    def get(self, source_id: int) -> DBSource | None:
        """Get single source by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM sources WHERE id = ?", (source_id,)
            ).fetchone()
            return row_to_source(row) if row else None

    def get_all(self) -> list[DBSource]:
        with self._db.conn() as conn:
            rows = conn.execute("SELECT * FROM sources ORDER BY name").fetchall()
            return [row_to_source(row) for row in rows]

    def get_active(self, type: str = "rss") -> list[DBSource]:
        """Active sources of one type, in insertion order."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM sources WHERE active = 1 AND type = ? ORDER BY id",
                (type,)
            ).fetchall()
            return [row_to_source(row) for row in rows]

    def set_active(self, source_id: int, active: bool) -> bool:
        """Enable or disable a source. Returns True if it exists."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "UPDATE sources SET active = ? WHERE id = ?", (active, source_id)
            )
            return cursor.rowcount == 1
