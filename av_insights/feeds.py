"""
Feed Parser - Fetch and parse RSS/Atom feeds.

Handles:
- RSS 2.0 and Atom 1.0 formats
- Every content variant a feed item may carry
- Normalized publish dates
"""

import asyncio
import calendar
import time
from dataclasses import dataclass
from datetime import datetime, timezone

import aiohttp
import feedparser

from .exceptions import FeedError


@dataclass
class FeedItem:
    """Represents a single item/entry from a feed."""
    url: str | None
    title: str | None
    author: str | None = None
    content: str | None = None
    encoded_content: str | None = None
    snippet: str | None = None
    summary: str | None = None
    iso_date: str | None = None
    pub_date: str | None = None

    def raw_content(self) -> str | None:
        """First non-empty content variant, richest first."""
        for value in (self.content, self.encoded_content, self.snippet, self.summary):
            if value:
                return value
        return None


@dataclass
class Feed:
    """Represents a parsed feed."""
    url: str
    title: str
    items: list[FeedItem]
    last_fetched: datetime


class FeedParser:
    """Fetches and parses RSS/Atom feeds."""

    def __init__(self, timeout: int = 30, user_agent: str | None = None):
        self.timeout = timeout
        self.user_agent = user_agent or "AV-InsightsBot/1.0 (+rss ingestion)"

    async def fetch(self, url: str) -> Feed:
        """
        Fetch and parse a feed URL.

        Raises:
            FeedError: If the feed cannot be downloaded or parsed
        """
        headers = {"User-Agent": self.user_agent}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as resp:
                    resp.raise_for_status()
                    content = await resp.read()
        except aiohttp.ClientError as e:
            raise FeedError(f"Feed fetch failed for {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise FeedError(f"Feed fetch timed out for {url}") from e

        return self.parse(url, content)

    def parse(self, url: str, content: str | bytes) -> Feed:
        """
        Parse feed content using feedparser.

        Raw bytes are preferred: feedparser then honours the encoding
        declared in the XML prolog instead of the HTTP charset.
        """
        parsed = feedparser.parse(content)

        # Check for parse errors
        if parsed.bozo and not parsed.entries:
            raise FeedError(f"Failed to parse feed: {parsed.bozo_exception}")

        items = [self._to_item(entry) for entry in parsed.entries]

        return Feed(
            url=url,
            title=parsed.feed.get("title", "Unknown Feed"),
            items=items,
            last_fetched=datetime.now(timezone.utc)
        )

    def _to_item(self, entry) -> FeedItem:
        content_values = [c.get("value") for c in entry.get("content", []) if c.get("value")]

        summary = entry.get("summary")
        summary_type = (entry.get("summary_detail") or {}).get("type", "")
        snippet = summary if summary and summary_type == "text/plain" else None

        url = entry.get("link")
        if not url:
            for link in entry.get("links", []):
                if link.get("rel") == "alternate" or link.get("type") == "text/html":
                    url = link.get("href")
                    break

        return FeedItem(
            url=url,
            title=entry.get("title"),
            author=entry.get("author") or entry.get("dc_creator"),
            content=content_values[0] if content_values else None,
            encoded_content=entry.get("content_encoded") or (
                content_values[1] if len(content_values) > 1 else None
            ),
            snippet=snippet,
            summary=summary,
            iso_date=self._iso_date(entry),
            pub_date=entry.get("published") or entry.get("pubdate"),
        )

    @staticmethod
    def _iso_date(entry) -> str | None:
        """ISO-8601 UTC string from feedparser's normalized date tuples."""
        for key in ("published_parsed", "updated_parsed"):
            parsed: time.struct_time | None = entry.get(key)
            if parsed:
                try:
                    ts = calendar.timegm(parsed)
                    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
                except (TypeError, ValueError, OverflowError):
                    continue
        return None


def parse_feed_sync(content: str | bytes, url: str = "") -> Feed:
    """
    Synchronous feed parsing (for use when content is already fetched).

    Useful for testing or when you already have the feed content.
    """
    parser = FeedParser()
    return parser.parse(url, content)
