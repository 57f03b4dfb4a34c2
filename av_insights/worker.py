"""
Classification worker process - one batch per invocation.

Run as `python -m av_insights.worker`; the classification scheduler spawns
it on every tick. Exit code 0 on a completed batch, 1 on a run-level failure.
"""

import asyncio
import logging
import signal
import sys

from .classifier import ArticleClassifier, BatchResult
from .config import config, configure_logging
from .database import Database
from .providers import LLMProvider, get_provider_from_env
from .relevance import load_rules

logger = logging.getLogger(__name__)


def build_provider() -> LLMProvider | None:
    return get_provider_from_env(
        openai_key=config.OPENAI_API_KEY,
        anthropic_key=config.ANTHROPIC_API_KEY,
        google_key=config.GOOGLE_API_KEY,
        preferred_provider=config.LLM_PROVIDER or None,
        openai_model=config.OPENAI_MODEL,
        timeout=config.MODEL_TIMEOUT_SECONDS,
    )


async def run_once(
    db: Database | None = None,
    provider: LLMProvider | None = None,
) -> BatchResult:
    """Classify one batch of pending articles."""
    if provider is None:
        provider = build_provider()
    if provider is None:
        raise RuntimeError("No LLM API key configured (OPENAI_API_KEY, ANTHROPIC_API_KEY or GOOGLE_API_KEY)")

    db = db or Database(config.DB_PATH)
    classifier = ArticleClassifier(
        db,
        provider,
        rules=load_rules(config.AV_HEURISTIC_RULES_PATH),
    )
    logger.info(f"Worker starting ({provider.name}/{provider.default_model}, batch {classifier.batch_size})")
    result = await classifier.run_batch()
    logger.info(
        f"Worker finished: {result.done} done, {result.skipped} skipped, {result.errors} error(s)"
    )
    return result


async def _run_until_signalled() -> BatchResult:
    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, task.cancel)
    return await run_once()


def main() -> int:
    configure_logging()
    try:
        asyncio.run(_run_until_signalled())
    except asyncio.CancelledError:
        logger.warning("Worker interrupted")
        return 1
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
