"""
Pytest fixtures for pipeline tests.
"""

import os
import tempfile
from pathlib import Path

import pytest

from av_insights.database import ArticleRow, Database
from av_insights.providers.base import LLMProvider, LLMResponse, ProviderCapabilities


class MockProvider(LLMProvider):
    """Mock LLM provider that returns (or raises) pre-configured responses."""

    def __init__(self):
        self.calls: list[dict] = []
        self.responses: list[str | Exception] = []
        self._call_index = 0

    @property
    def name(self) -> str:
        return "mock"

    @property
    def default_model(self) -> str:
        return "mock-model"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(supports_json_schema=True)

    def queue_response(self, response: str | Exception):
        """Queue text to return, or an exception to raise, on the next call."""
        self.responses.append(response)

    def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        use_cache: bool = False,
        json_schema: dict | None = None,
        schema_name: str = "response",
    ) -> LLMResponse:
        self.calls.append({
            "user_prompt": user_prompt,
            "system_prompt": system_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "json_schema": json_schema,
            "schema_name": schema_name,
        })
        response = self.responses[self._call_index] if self._call_index < len(self.responses) else "{}"
        self._call_index += 1
        if isinstance(response, Exception):
            raise response
        return LLMResponse(text=response, model=model or self.default_model)


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d) / "test.db"


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def source_id(test_db):
    """An active RSS source."""
    return test_db.add_source("Test Feed", "https://example.com/feed.xml")


@pytest.fixture
def mock_provider():
    return MockProvider()


def make_row(source_id: int, url: str, **overrides) -> ArticleRow:
    """Article row with usable content unless overridden."""
    fields = {
        "source_id": source_id,
        "url": url,
        "title": "Waymo expands robotaxi service",
        "published_at": "2025-01-15T10:00:00+00:00",
        "author": None,
        "raw_content": "<p>Waymo is expanding its robotaxi service to new cities.</p>",
        "cleaned_content": "Waymo is expanding its robotaxi service to new cities.",
    }
    fields.update(overrides)
    return ArticleRow(**fields)
