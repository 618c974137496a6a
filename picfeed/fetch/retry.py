import asyncio
import sys
from dataclasses import dataclass
from typing import Any, List, Optional

from picfeed.core.config import settings
from picfeed.errors import AllAttemptsExhaustedError, BlockedError, FetchError
from picfeed.fetch.base import BrowserSession
from picfeed.fetch.page_fetcher import PageFetcher


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    retry_delay: float = 2.0  # seconds
    immediate_first_attempt: bool = True
    max_concurrency: Optional[int] = None  # None: all delayed retries at once
    retry_blocked: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1 or None")

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.MAX_ATTEMPTS,
            retry_delay=settings.RETRY_DELAY,
            max_concurrency=settings.retry_max_concurrency,
            retry_blocked=settings.RETRY_BLOCKED,
        )


class RetryOrchestrator:
    """
    Wrap PageFetcher with a bounded retry policy.

    One immediate attempt is made first. If it fails, the remaining attempts
    each wait retry_delay and then run concurrently, so the worst case costs
    about one delay period regardless of the attempt count. All retries are
    awaited; the first success in issue order wins and the rest are dropped.
    """

    def __init__(self, fetcher: Optional[PageFetcher] = None, policy: Optional[RetryPolicy] = None):
        self.fetcher = fetcher or PageFetcher()
        self.policy = policy or RetryPolicy.from_settings()

    async def fetch_with_retry(self, url: str, session: BrowserSession) -> str:
        policy = self.policy
        last_error: Optional[BaseException] = None
        attempts = 0

        if policy.immediate_first_attempt:
            attempts += 1
            try:
                return await self.fetcher.fetch(url, session)
            except FetchError as e:
                last_error = e
                print(f"Initial attempt failed: {e}", file=sys.stderr)
                if isinstance(e, BlockedError) and not policy.retry_blocked:
                    raise AllAttemptsExhaustedError(url, attempts, e) from e

        retries = policy.max_attempts - attempts
        if retries <= 0:
            raise AllAttemptsExhaustedError(url, attempts, last_error) from last_error

        limit = asyncio.Semaphore(policy.max_concurrency or retries)

        async def attempt(index: int) -> Optional[str]:
            nonlocal last_error
            async with limit:
                await asyncio.sleep(policy.retry_delay)
                try:
                    return await self.fetcher.fetch(url, session)
                except FetchError as e:
                    last_error = e
                    print(f"Retry {index + 1} failed: {e}", file=sys.stderr)
                    return None

        # Unexpected errors must not cancel sibling retries still using the session
        results: List[Any] = await asyncio.gather(
            *(attempt(i) for i in range(retries)),
            return_exceptions=True,
        )
        attempts += retries

        for result in results:
            if isinstance(result, BaseException):
                raise result
        for result in results:
            if result is not None:
                return result

        raise AllAttemptsExhaustedError(url, attempts, last_error) from last_error
