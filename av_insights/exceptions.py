"""
Pipeline exception types.

Errors are grouped by how the caller recovers from them:
- ExtractionError / FetchTimeoutError: degradable, fall back to the feed snippet
- FeedError: isolated to one source, the run moves on
- AnalysisError / StoreError: recorded on the article (or fail the run when
  raised outside the per-article scope)
"""


class AVInsightsError(Exception):
    """Base class for pipeline errors."""


class ExtractionError(AVInsightsError):
    """Full-text fetch or extraction failed."""


class FetchTimeoutError(ExtractionError):
    """Full-text fetch exceeded its time budget."""

    def __init__(self, url: str, timeout_ms: int):
        super().__init__(f"Timed out after {timeout_ms}ms fetching {url}")
        self.url = url
        self.timeout_ms = timeout_ms


class FeedError(AVInsightsError):
    """Feed could not be fetched or parsed."""


class AnalysisError(AVInsightsError):
    """Model returned no usable structured output."""


class ModelTimeoutError(AnalysisError):
    """Model call exceeded its time budget."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Model call timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class StoreError(AVInsightsError):
    """A database read or write did not go through."""


def truncate_error(err: BaseException, limit: int = 500) -> str:
    """Render an exception as a bounded diagnostic string."""
    message = str(err) or type(err).__name__
    return message[:limit]
