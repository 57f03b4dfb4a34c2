"""
Full-text extractor - fetch an article page and pull out the readable text.

Handles:
- Aggregator wrapper URLs (resolved via SourceExtractor first)
- HTTP fetch with a total time budget and descriptive user agent
- Reader-mode extraction using trafilatura
"""

import asyncio
import logging
from dataclasses import dataclass

import aiohttp
import trafilatura
from trafilatura.settings import use_config

from .config import config
from .exceptions import ExtractionError, FetchTimeoutError
from .source_extractor import SourceExtractor

logger = logging.getLogger(__name__)

# Below this the page is almost certainly a teaser, cookie wall or index page
MIN_READABLE_CHARS = 200


@dataclass
class ExtractedText:
    """Readable content pulled from an article page."""
    title: str | None = None
    text_content: str | None = None
    excerpt: str | None = None
    byline: str | None = None
    site_name: str | None = None
    length: int = 0


class FullTextExtractor:
    """Fetches article pages and extracts their primary readable content."""

    def __init__(
        self,
        timeout_ms: int | None = None,
        user_agent: str | None = None,
        source_extractor: SourceExtractor | None = None,
    ):
        self.timeout_ms = timeout_ms if timeout_ms is not None else config.FULLTEXT_TIMEOUT_MS
        self.user_agent = user_agent or config.FULLTEXT_USER_AGENT
        self.source_extractor = source_extractor or SourceExtractor()
        self.headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "en-GB,en;q=0.9",
        }

    async def extract(self, url: str) -> ExtractedText:
        """
        Fetch url and extract its readable text.

        Returns a zero-length result when the page has too little readable
        text; callers must check `length`, not rely on an exception.

        Raises:
            FetchTimeoutError: If the fetch exceeds the time budget
            ExtractionError: If the page returns a non-2xx status
        """
        resolution = await self.source_extractor.resolve(url)
        resolved_url = resolution.url
        if resolved_url != url:
            logger.debug(f"URL resolved: {url} -> {resolved_url}")

        html = await self._download(resolved_url)
        return self._parse(resolved_url, html)

    async def _download(self, url: str) -> str:
        """Fetch a page as text within the configured time budget."""
        try:
            async with aiohttp.ClientSession(headers=self.headers) as session:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000),
                    allow_redirects=True
                ) as resp:
                    if not 200 <= resp.status < 300:
                        raise ExtractionError(f"Fetch failed: {resp.status} {resp.reason}")
                    html = await resp.text(errors="replace")
                    logger.debug(
                        f"status={resp.status} "
                        f"content-type={resp.headers.get('Content-Type', '').split(';')[0]} "
                        f"finalUrl={resp.url} htmlLen={len(html)}"
                    )
                    return html
        except asyncio.TimeoutError as e:
            raise FetchTimeoutError(url, self.timeout_ms) from e
        except aiohttp.ClientError as e:
            raise ExtractionError(f"Fetch failed for {url}: {e}") from e

    def _parse(self, url: str, html: str) -> ExtractedText:
        """Run reader-mode extraction over fetched HTML."""
        extraction_config = use_config()
        extraction_config.set("DEFAULT", "EXTRACTION_TIMEOUT", "0")

        text = trafilatura.extract(
            html,
            url=url,
            output_format="txt",
            include_comments=False,
            include_tables=False,
            favor_recall=True,
            config=extraction_config,
        )
        metadata = trafilatura.extract_metadata(html, default_url=url)

        result = ExtractedText(
            title=getattr(metadata, "title", None),
            excerpt=getattr(metadata, "description", None),
            byline=getattr(metadata, "author", None),
            site_name=getattr(metadata, "sitename", None),
        )

        text = (text or "").strip()
        if len(text) < MIN_READABLE_CHARS:
            logger.debug(f"readabilityLen={len(text)} (too short) title={result.title!r}")
            return result

        result.text_content = text
        result.length = len(text)
        return result


async def extract_full_text(url: str) -> ExtractedText:
    """Convenience function to extract a single URL with default settings."""
    extractor = FullTextExtractor()
    return await extractor.extract(url)
