"""
Configuration from environment.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(value: str | None, default: int) -> int:
    """Parse integer from environment variable, falling back on bad input."""
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, default: float) -> float:
    """Parse float from environment variable, falling back on bad input."""
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


DEFAULT_USER_AGENT = "AV-InsightsBot/1.0 (+personal project; readability extraction)"


class Config:
    """Pipeline configuration from environment."""

    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/av_insights.db"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Full-text enrichment during ingestion
    FULLTEXT_ENABLED: bool = _parse_bool(os.getenv("FULLTEXT_ENABLED"), default=True)
    FULLTEXT_MIN_SNIPPET_CHARS: int = _parse_int(os.getenv("FULLTEXT_MIN_SNIPPET_CHARS"), 400)
    FULLTEXT_MIN_EXTRACTED_CHARS: int = _parse_int(os.getenv("FULLTEXT_MIN_EXTRACTED_CHARS"), 800)
    FULLTEXT_MAX_PER_FEED: int = _parse_int(os.getenv("FULLTEXT_MAX_PER_FEED"), 5)
    FULLTEXT_TIMEOUT_MS: int = _parse_int(os.getenv("FULLTEXT_TIMEOUT_MS"), 12000)
    FULLTEXT_USER_AGENT: str = os.getenv("FULLTEXT_USER_AGENT") or DEFAULT_USER_AGENT
    FULLTEXT_DEBUG: bool = _parse_bool(os.getenv("FULLTEXT_DEBUG"), default=False)

    # LLM provider configuration
    # Preferred provider: "openai", "anthropic", or "google"
    # If not set, uses the first available key in order: OpenAI > Anthropic > Google
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")

    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_MAX_INPUT_CHARS: int = _parse_int(os.getenv("OPENAI_MAX_INPUT_CHARS"), 8000)
    OPENAI_MAX_OUTPUT_TOKENS: int = _parse_int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS"), 350)
    OPENAI_MAX_RETRIES: int = _parse_int(os.getenv("OPENAI_MAX_RETRIES"), 4)
    MODEL_TIMEOUT_SECONDS: float = _parse_float(os.getenv("MODEL_TIMEOUT_SECONDS"), 60.0)

    # Relevance gate
    AV_RELEVANCE_THRESHOLD: float = _parse_float(os.getenv("AV_RELEVANCE_THRESHOLD"), 0.55)
    AV_HEURISTIC_RULES_PATH: str = os.getenv("AV_HEURISTIC_RULES_PATH", "")

    # Worker and schedules
    AI_BATCH_SIZE: int = _parse_int(os.getenv("AI_BATCH_SIZE"), 3)
    INGEST_INTERVAL_MINUTES: int = _parse_int(os.getenv("INGEST_INTERVAL_MINUTES"), 60)
    AI_INTERVAL_MINUTES: int = _parse_int(os.getenv("AI_INTERVAL_MINUTES"), 10)
    WORKER_KILL_GRACE_SECONDS: float = _parse_float(os.getenv("WORKER_KILL_GRACE_SECONDS"), 10.0)

    @classmethod
    def has_llm_key(cls) -> bool:
        """Check if any LLM API key is configured."""
        return bool(cls.OPENAI_API_KEY or cls.ANTHROPIC_API_KEY or cls.GOOGLE_API_KEY)


config = Config()


def configure_logging(level: str | None = None):
    """Set up root logging for a pipeline process."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if config.FULLTEXT_DEBUG:
        logging.getLogger("av_insights.fetcher").setLevel(logging.DEBUG)
        logging.getLogger("av_insights.source_extractor").setLevel(logging.DEBUG)
