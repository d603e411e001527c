"""
Tajweed Fetching
================
Per-chapter retrieval of tajweed-annotated text from a rate-limited API.

Each chapter runs through a small state machine::

    FETCH --ok--> DONE
    FETCH --rate limited--> RATE_LIMITED_WAIT --> FETCH (same chapter)
    FETCH --other error--> FAILED

Rate-limit retries are bounded; running out of attempts raises
RateLimitExhaustedError. Any other error degrades to an empty result.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from quran_json.config import Config, setup_logging
from quran_json.errors import APIResponseError, DataCollectionError, RateLimitExhaustedError

Sleep = Callable[[float], Awaitable[None]]


class FetchState(Enum):
    FETCH = "fetch"
    RATE_LIMITED_WAIT = "rate_limited_wait"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryPolicy:
    """Delays and limits for tajweed requests."""
    request_delay: float = Config.TAJWEED_REQUEST_DELAY
    rate_limit_delay: float = Config.RATE_LIMIT_DELAY
    backoff_base: float = Config.RETRY_BACKOFF_BASE
    max_attempts: int = Config.RATE_LIMIT_MAX_ATTEMPTS

    def backoff(self, attempt: int) -> float:
        """Wait before retry number ``attempt`` (1-based)."""
        return self.rate_limit_delay * self.backoff_base ** (attempt - 1)


class TajweedFetcher:
    """
    Fetches tajweed text chapter by chapter.

    ``client`` only needs an async ``get_tajweed(chapter)`` method, which
    :class:`quran_json.client.QuranAPIClient` provides.
    """

    def __init__(
        self,
        client,
        policy: Optional[RetryPolicy] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Sleep = asyncio.sleep
    ):
        self.client = client
        self.policy = policy or RetryPolicy()
        self.logger = logger or setup_logging()
        self.sleep = sleep

    async def fetch(self, chapter: int) -> List[str]:
        """
        Fetch tajweed text for one chapter.

        Args:
            chapter: Chapter number (1-based)

        Returns:
            Tajweed text per verse, or an empty list if the chapter failed

        Raises:
            RateLimitExhaustedError: If every attempt was rate limited
        """
        state = FetchState.FETCH
        attempt = 0
        tajweeds: List[str] = []

        while state not in (FetchState.DONE, FetchState.FAILED):
            if state is FetchState.FETCH:
                attempt += 1
                self.logger.info(f"Fetching Tajweed for Chapter {chapter}...")
                try:
                    tajweeds = await self.client.get_tajweed(chapter)
                    state = FetchState.DONE
                except APIResponseError as e:
                    if e.is_rate_limited:
                        state = FetchState.RATE_LIMITED_WAIT
                    else:
                        self.logger.error(f"Error fetching chapter {chapter}: {e}")
                        state = FetchState.FAILED
                except DataCollectionError as e:
                    self.logger.error(f"Error fetching chapter {chapter}: {e}")
                    state = FetchState.FAILED

            elif state is FetchState.RATE_LIMITED_WAIT:
                if attempt >= self.policy.max_attempts:
                    raise RateLimitExhaustedError(chapter, attempt)
                wait = self.policy.backoff(attempt)
                self.logger.warning(
                    f"Rate limit hit on chapter {chapter}. "
                    f"Waiting {wait}s before retrying ({attempt}/{self.policy.max_attempts})..."
                )
                await self.sleep(wait)
                state = FetchState.FETCH

        if state is FetchState.DONE:
            await self.sleep(self.policy.request_delay)

        return tajweeds
