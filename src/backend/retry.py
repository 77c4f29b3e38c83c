# bounded exponential backoff with jitter around backend calls
import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from backend.errors import is_retryable
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Re-run a failing coroutine factory a bounded number of times.

    Attempt n (0-based) waits base_delay * 2**n, scaled by a random factor in
    [1 - jitter, 1 + jitter], before trying again. Only errors accepted by
    should_retry are retried; the last error is raised unchanged.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    jitter: float = 0.1
    should_retry: Callable[[BaseException], bool] = is_retryable
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def delay_for(self, attempt: int) -> float:
        factor = 1.0
        if self.jitter:
            factor = random.uniform(1 - self.jitter, 1 + self.jitter)
        return self.base_delay * (2**attempt) * factor

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as exc:
                if attempt >= self.max_retries or not self.should_retry(exc):
                    raise
                delay = self.delay_for(attempt)
                _logger.warning(
                    f"Backend call failed ({exc!r}), retry {attempt + 1}/"
                    f"{self.max_retries} in {delay:.2f}s"
                )
                await self.sleep(delay)
                attempt += 1

