"""
Tests for full-text extraction.

Network and trafilatura are mocked; these cover the result contract.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from av_insights.exceptions import ExtractionError, FetchTimeoutError
from av_insights.fetcher import MIN_READABLE_CHARS, FullTextExtractor
from av_insights.source_extractor import ResolutionResult


def _metadata(title="Waymo expands to Miami"):
    return MagicMock(
        title=title,
        description="Robotaxi service grows",
        author="Jane Reporter",
        sitename="Example News",
    )


def _extractor(resolved_url: str = "https://publisher.com/story") -> FullTextExtractor:
    source_extractor = MagicMock()
    source_extractor.resolve = AsyncMock(
        return_value=ResolutionResult(url=resolved_url, aggregator=None, method="passthrough")
    )
    return FullTextExtractor(timeout_ms=5000, user_agent="test-agent", source_extractor=source_extractor)


class TestExtract:

    @pytest.mark.asyncio
    async def test_readable_page(self):
        extractor = _extractor()
        body = "Waymo said on Tuesday it will expand. " * 20

        with patch.object(extractor, "_download", AsyncMock(return_value="<html></html>")), \
             patch("av_insights.fetcher.trafilatura") as mock_trafilatura:
            mock_trafilatura.extract.return_value = body
            mock_trafilatura.extract_metadata.return_value = _metadata()
            result = await extractor.extract("https://publisher.com/story")

        assert result.text_content == body.strip()
        assert result.length == len(body.strip())
        assert result.title == "Waymo expands to Miami"
        assert result.byline == "Jane Reporter"
        assert result.site_name == "Example News"

    @pytest.mark.asyncio
    async def test_short_text_returns_zero_length_with_metadata(self):
        extractor = _extractor()

        with patch.object(extractor, "_download", AsyncMock(return_value="<html></html>")), \
             patch("av_insights.fetcher.trafilatura") as mock_trafilatura:
            mock_trafilatura.extract.return_value = "x" * (MIN_READABLE_CHARS - 1)
            mock_trafilatura.extract_metadata.return_value = _metadata()
            result = await extractor.extract("https://publisher.com/story")

        assert result.length == 0
        assert result.text_content is None
        assert result.title == "Waymo expands to Miami"

    @pytest.mark.asyncio
    async def test_no_text_at_all(self):
        extractor = _extractor()

        with patch.object(extractor, "_download", AsyncMock(return_value="<html></html>")), \
             patch("av_insights.fetcher.trafilatura") as mock_trafilatura:
            mock_trafilatura.extract.return_value = None
            mock_trafilatura.extract_metadata.return_value = None
            result = await extractor.extract("https://publisher.com/story")

        assert result.length == 0
        assert result.title is None

    @pytest.mark.asyncio
    async def test_downloads_resolved_url(self):
        extractor = _extractor(resolved_url="https://publisher.com/real")

        with patch.object(extractor, "_download", AsyncMock(return_value="<html></html>")) as download, \
             patch("av_insights.fetcher.trafilatura") as mock_trafilatura:
            mock_trafilatura.extract.return_value = ""
            mock_trafilatura.extract_metadata.return_value = None
            await extractor.extract("https://news.google.com/rss/articles/abc")

        download.assert_awaited_once_with("https://publisher.com/real")

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        extractor = _extractor()

        with patch.object(extractor, "_download", AsyncMock(side_effect=ExtractionError("Fetch failed: 403 Forbidden"))):
            with pytest.raises(ExtractionError, match="403"):
                await extractor.extract("https://publisher.com/story")

    @pytest.mark.asyncio
    async def test_timeout_is_an_extraction_error(self):
        extractor = _extractor()

        with patch.object(
            extractor, "_download",
            AsyncMock(side_effect=FetchTimeoutError("https://publisher.com/story", 5000)),
        ):
            with pytest.raises(ExtractionError, match="5000ms"):
                await extractor.extract("https://publisher.com/story")
