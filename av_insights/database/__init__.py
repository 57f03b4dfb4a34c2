"""
Database module - SQLite storage for sources, articles and ingestion logs.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import AIStatus, ArticleRow, DBArticle, DBIngestionLog, DBSource
from .article_repository import ArticleRepository
from .source_repository import SourceRepository
from .ingestion_log_repository import IngestionLogRepository
from .database import Database

__all__ = [
    "AIStatus",
    "ArticleRow",
    "Database",
    "DatabaseConnection",
    "DBArticle",
    "DBIngestionLog",
    "DBSource",
    "ArticleRepository",
    "SourceRepository",
    "IngestionLogRepository",
]
