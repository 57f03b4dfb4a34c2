"""
Feed ingester - pulls every active RSS source into the article store.

Per source: fetch and parse the feed, normalize each item, optionally
enrich short snippets with full-text extraction, then upsert the batch
keyed on URL. Every phase leaves an entry in ingestion_logs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from .config import config
from .database import ArticleRow, Database, DBSource
from .exceptions import StoreError, truncate_error
from .feeds import FeedItem, FeedParser
from .fetcher import FullTextExtractor
from .text import clean_text

logger = logging.getLogger(__name__)

MIN_REPLACEMENT_TITLE_CHARS = 5


def parse_published_at(iso_date: str | None, pub_date: str | None) -> str | None:
    """UTC ISO-8601 timestamp from an item's ISO date, else its RFC-822 date."""
    parsed = None
    if iso_date:
        try:
            parsed = datetime.fromisoformat(iso_date.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    if parsed is None and pub_date:
        try:
            parsed = parsedate_to_datetime(pub_date)
        except (TypeError, ValueError):
            parsed = None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat()


@dataclass
class SourceResult:
    source_id: int
    status: str
    upserted: int = 0
    full_text_attempts: int = 0
    full_text_used: int = 0
    error: str | None = None


@dataclass
class IngestionSummary:
    results: list[SourceResult] = field(default_factory=list)

    @property
    def upserted(self) -> int:
        return sum(r.upserted for r in self.results)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status != "success")


class FeedIngester:
    """Ingests active RSS sources into the database."""

    def __init__(
        self,
        db: Database,
        feed_parser: FeedParser | None = None,
        extractor: FullTextExtractor | None = None,
        fulltext_enabled: bool | None = None,
        min_snippet_chars: int | None = None,
        min_extracted_chars: int | None = None,
        max_per_feed: int | None = None,
    ):
        self.db = db
        self.feed_parser = feed_parser or FeedParser()
        self.extractor = extractor or FullTextExtractor()
        self.fulltext_enabled = (
            config.FULLTEXT_ENABLED if fulltext_enabled is None else fulltext_enabled
        )
        self.min_snippet_chars = (
            config.FULLTEXT_MIN_SNIPPET_CHARS if min_snippet_chars is None else min_snippet_chars
        )
        self.min_extracted_chars = (
            config.FULLTEXT_MIN_EXTRACTED_CHARS if min_extracted_chars is None else min_extracted_chars
        )
        self.max_per_feed = config.FULLTEXT_MAX_PER_FEED if max_per_feed is None else max_per_feed

    def _log(self, source_id: int | None, status: str, message: str, meta: dict | None = None):
        """Write an audit entry; a failed write never interrupts ingestion."""
        try:
            self.db.log_ingestion(source_id, status, message, meta)
        except Exception as e:
            logger.error(f"Failed to write ingestion log ({status}) for source {source_id}: {e}")

    async def ingest_all(self) -> IngestionSummary:
        """
        Ingest every active RSS source, one at a time.

        Raises:
            StoreError: If the source list cannot be read
        """
        sources = self.db.get_active_rss_sources()
        logger.info(f"Found {len(sources)} RSS source(s)")

        summary = IngestionSummary()
        for source in sources:
            summary.results.append(await self.ingest_source(source))

        logger.info(
            f"Ingestion finished: {summary.upserted} article(s) upserted, "
            f"{summary.failed} source(s) failed"
        )
        return summary

    async def ingest_source(self, source: DBSource) -> SourceResult:
        """Fetch, normalize, enrich and store one source. Never raises."""
        logger.info(f"Fetching feed: {source.name}")
        self._log(source.id, "started", "Starting RSS fetch")

        try:
            feed = await self.feed_parser.fetch(source.url)
        except Exception as e:
            message = truncate_error(e)
            logger.error(f"Failed to fetch {source.name}: {message}")
            self._log(source.id, "fetch_error", message)
            return SourceResult(source.id, "fetch_error", error=message)

        item_count = len(feed.items)
        logger.info(f"Fetched {item_count} item(s) from {source.name}")
        self._log(source.id, "fetched", f"Fetched {item_count} items", {"itemCount": item_count})

        result = SourceResult(source.id, "success")
        rows = []
        for item in feed.items:
            allow_full_text = result.full_text_attempts < self.max_per_feed
            row, attempted, used = await self._to_row(source, item, allow_full_text)
            if row is None:
                continue
            if attempted:
                result.full_text_attempts += 1
            if used:
                result.full_text_used += 1
            rows.append(row)

        try:
            result.upserted = self.db.upsert_articles(rows)
        except StoreError as e:
            message = truncate_error(e)
            logger.error(f"DB upsert failed for {source.name}: {message}")
            self._log(source.id, "db_error", message)
            result.status = "db_error"
            result.error = message
            return result

        logger.info(f"Upserted {result.upserted} article(s) for {source.name}")
        self._log(
            source.id,
            "success",
            f"Upserted {result.upserted} articles",
            {
                "upsertedCount": result.upserted,
                "fullTextAttempts": result.full_text_attempts,
                "fullTextUsed": result.full_text_used,
            },
        )
        return result

    async def _to_row(
        self, source: DBSource, item: FeedItem, allow_full_text: bool
    ) -> tuple[ArticleRow | None, bool, bool]:
        """Build the article row for an item. Returns (row, attempted, used)."""
        url = (item.url or "").strip()
        if not url:
            return None, False, False

        raw = item.raw_content()
        title = (item.title or "").strip() or "Untitled"
        cleaned = clean_text(raw)

        attempted = False
        used = False
        if allow_full_text and self.fulltext_enabled and len(cleaned or "") < self.min_snippet_chars:
            attempted = True
            logger.debug(f"Attempting full text for {url}")
            try:
                extracted = await self.extractor.extract(url)
                if extracted.text_content and extracted.length >= self.min_extracted_chars:
                    raw = extracted.text_content
                    cleaned = clean_text(raw)
                    if extracted.title and len(extracted.title) > MIN_REPLACEMENT_TITLE_CHARS:
                        title = extracted.title
                    used = True
                    logger.info(f"Full text: {len(cleaned or '')} chars extracted for {title}")
                else:
                    logger.info(f"Full text too short or empty for {title}")
            except Exception as e:
                logger.warning(f"Full text failed for {title}: {e}")

        row = ArticleRow(
            source_id=source.id,
            url=url,
            title=title,
            published_at=parse_published_at(item.iso_date, item.pub_date),
            author=item.author,
            raw_content=raw,
            cleaned_content=cleaned,
        )
        return row, attempted, used
