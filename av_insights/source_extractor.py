"""
Source URL resolver - unwrap news aggregator redirect links.

Aggregator feeds (Google News) hand out wrapper URLs that point back at the
aggregator. Resolution order:
1. Manual-redirect fetch, reading the Location header
2. Parse the wrapper page for <link rel="canonical"> or the first external link
3. Give up and use the original URL

Resolution never raises: any failure degrades to the original URL.
"""

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """Result of unwrapping an aggregator URL."""
    url: str
    aggregator: str | None  # "google_news" or None for direct links
    method: str  # "passthrough", "redirect", "canonical", "anchor", "fallback"
    error: str | None = None


class SourceExtractor:
    """Resolves aggregator wrapper URLs to the publisher's article URL."""

    # Aggregator domain patterns
    AGGREGATOR_PATTERNS = {
        "google_news": ["news.google.com"],
    }

    # Anchors on these hosts never count as the publisher link
    IGNORED_LINK_HOSTS = {
        "google_news": ["google.com"],
    }

    def __init__(self, timeout: int = 15):
        self.timeout = timeout
        self.headers = {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
            "Accept": "text/html,application/xhtml+xml",
        }

    def identify_aggregator(self, url: str) -> str | None:
        """Identify which aggregator a URL belongs to."""
        url_lower = url.lower()
        for aggregator, domains in self.AGGREGATOR_PATTERNS.items():
            if any(domain in url_lower for domain in domains):
                return aggregator
        return None

    def is_aggregator(self, url: str) -> bool:
        """Check if URL is from a known aggregator."""
        return self.identify_aggregator(url) is not None

    async def resolve(self, url: str) -> ResolutionResult:
        """
        Resolve an aggregator URL to the underlying article URL.

        Non-aggregator URLs are returned unchanged.
        """
        aggregator = self.identify_aggregator(url)
        if not aggregator:
            return ResolutionResult(url=url, aggregator=None, method="passthrough")

        wrapper_domains = self.AGGREGATOR_PATTERNS[aggregator]

        try:
            status, location, html = await self._fetch_wrapper(url)

            if 300 <= status < 400 and location:
                location = urljoin(url, location)
                if not self._points_at(location, wrapper_domains):
                    logger.debug(f"Aggregator redirect: {url} -> {location}")
                    return ResolutionResult(url=location, aggregator=aggregator, method="redirect")

            if html:
                found = self._find_link_in_html(html, aggregator)
                if found:
                    target, method = found
                    logger.debug(f"Aggregator {method} link: {url} -> {target}")
                    return ResolutionResult(url=target, aggregator=aggregator, method=method)

            logger.debug(f"Aggregator resolution failed, using original URL: {url}")
            return ResolutionResult(
                url=url,
                aggregator=aggregator,
                method="fallback",
                error="No publisher link found"
            )

        except asyncio.TimeoutError:
            logger.debug(f"Aggregator resolution timed out: {url}")
            return ResolutionResult(url=url, aggregator=aggregator, method="fallback", error="Timeout")
        except Exception as e:
            logger.debug(f"Aggregator resolution error for {url}: {e}")
            return ResolutionResult(url=url, aggregator=aggregator, method="fallback", error=str(e))

    async def _fetch_wrapper(self, url: str) -> tuple[int, str | None, str]:
        """Fetch the wrapper page without following redirects."""
        async with aiohttp.ClientSession(headers=self.headers) as session:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=False
            ) as resp:
                location = resp.headers.get("Location")
                html = await resp.text(errors="replace")
                return resp.status, location, html

    def _find_link_in_html(self, html: str, aggregator: str) -> tuple[str, str] | None:
        """Find the publisher URL in a wrapper page: canonical first, then anchors."""
        soup = BeautifulSoup(html, "html.parser")
        wrapper_domains = self.AGGREGATOR_PATTERNS[aggregator]
        ignored_hosts = self.IGNORED_LINK_HOSTS.get(aggregator, wrapper_domains)

        canonical = soup.find("link", rel="canonical", href=True)
        if canonical:
            href = canonical["href"].strip()
            if href.startswith("http") and not self._points_at(href, wrapper_domains):
                return href, "canonical"

        for link in soup.find_all("a", href=True):
            href = link["href"].strip()
            if "http" in href and not self._points_at(href, ignored_hosts):
                return href, "anchor"

        return None

    @staticmethod
    def _points_at(url: str, domains: list[str]) -> bool:
        url_lower = url.lower()
        return any(domain in url_lower for domain in domains)
