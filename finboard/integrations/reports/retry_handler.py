"""
Report Retry Handler
Bounded retry on provider rate limiting, honouring Retry-After.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from finboard.integrations.reports.exceptions import RateLimitedError
from finboard.integrations.reports.rate_limiter import Clock, SystemClock

logger = logging.getLogger(__name__)


def parse_retry_after(value: Any) -> Optional[float]:
    """Seconds from a Retry-After header value, or None if absent/invalid."""
    if value is None:
        return None
    try:
        seconds = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def extract_retry_after(exception: Exception) -> Optional[float]:
    """
    Extract Retry-After header value from an SDK or HTTP exception.

    Checks exception.headers, then exception.response.headers.
    """
    headers = getattr(exception, "headers", None)
    if headers:
        retry_after = parse_retry_after(headers.get("Retry-After"))
        if retry_after is not None:
            return retry_after

    response = getattr(exception, "response", None)
    response_headers = getattr(response, "headers", None)
    if response_headers:
        return parse_retry_after(response_headers.get("Retry-After"))

    return None


class RateLimitRetryPolicy:
    """
    How long to wait after a 429 and how many times to retry.

    Uses the provider's Retry-After when given, otherwise exponential
    backoff (backoff_base * 2**attempt). Every wait is capped at max_wait.
    """

    def __init__(
        self,
        max_retries: int = 1,
        backoff_base: float = 1.0,
        max_wait: float = 30.0,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.max_wait = max_wait

    def delay_for(self, retry_after: Optional[float], attempt: int = 0) -> float:
        """Seconds to wait before retry number attempt + 1."""
        if retry_after is not None:
            delay = retry_after
        else:
            delay = self.backoff_base * (2 ** attempt)
        return max(0.0, min(delay, self.max_wait))


class RetryHandler:
    """
    Executes a provider call, retrying only on RateLimitedError.

    Any other exception propagates immediately. After max_retries the
    last RateLimitedError is re-raised.
    """

    def __init__(
        self,
        policy: Optional[RateLimitRetryPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        self.policy = policy or RateLimitRetryPolicy()
        self.clock = clock or SystemClock()

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs
    ) -> Any:
        attempt = 0
        while True:
            try:
                return await func(*args, **kwargs)
            except RateLimitedError as e:
                if attempt >= self.policy.max_retries:
                    logger.warning(
                        "Rate limited (429) after %d attempt(s). Giving up.",
                        attempt + 1,
                    )
                    raise

                wait_seconds = self.policy.delay_for(e.retry_after, attempt)
                logger.info(
                    "Rate limited (429). Retrying after %.1f seconds (attempt %d/%d)...",
                    wait_seconds,
                    attempt + 1,
                    self.policy.max_retries + 1,
                )
                await self.clock.sleep(wait_seconds)
                attempt += 1
