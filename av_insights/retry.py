"""
Retry with exponential backoff for rate-limited LLM calls.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKOFF_MAX_SECONDS = 30


def is_rate_limit_error(err: BaseException) -> bool:
    """True for 429 / rate-limit failures from any provider SDK."""
    for attr in ("status_code", "code", "status"):
        if getattr(err, attr, None) == 429:
            return True
    message = str(err)
    return "429" in message or "rate limit" in message.lower()


def _log_retry(retry_state: RetryCallState):
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    max_retries = retry_state.retry_object.stop.max_attempt_number - 1
    logger.warning(
        f"Rate limited, retrying in {delay:.0f}s "
        f"(attempt {retry_state.attempt_number}/{max_retries})"
    )


async def with_retries(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 4,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await fn(), retrying only on rate-limit errors.

    fn is attempted at most max_retries + 1 times, waiting 1s, 2s, 4s ...
    (capped at 30s) between attempts. Any other error, or the last
    rate-limit error, propagates unchanged.
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_rate_limit_error),
        wait=wait_exponential(multiplier=1, min=1, max=BACKOFF_MAX_SECONDS),
        stop=stop_after_attempt(max(0, max_retries) + 1),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(fn)
