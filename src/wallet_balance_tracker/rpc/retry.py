"""Retry logic with exponential backoff for async balance fetches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryConfig:
    """
    Configuration for retry behavior.

    Parameters
    ----------
    max_retries : int
        Maximum number of retry attempts
    base_delay : float
        Initial delay in seconds before first retry
    max_delay : float
        Maximum delay between retries
    exponential_base : float
        Base for exponential backoff calculation

    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base

    def get_delay(self, attempt: int) -> float:
        """
        Calculate delay for a given retry attempt using exponential backoff.

        Parameters
        ----------
        attempt : int
            Current attempt number (0-indexed)

        Returns
        -------
        float
            Delay in seconds

        """
        delay = self.base_delay * (self.exponential_base**attempt)
        return min(delay, self.max_delay)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    config: RetryConfig,
    *,
    should_continue: Callable[[], bool] | None = None,
) -> T:
    """
    Await a coroutine factory, retrying failures with exponential backoff.

    Parameters
    ----------
    func : Callable[[], Awaitable[T]]
        Zero-argument coroutine factory, called once per attempt
    config : RetryConfig
        Retry configuration
    should_continue : Callable[[], bool] | None
        Checked before each retry. Returning False stops retrying and
        re-raises the last failure.

    Returns
    -------
    T
        Result of the first successful attempt

    Raises
    ------
    Exception
        The last failure once retries are exhausted or abandoned

    """
    last_exception = None

    for attempt in range(config.max_retries + 1):
        try:
            return await func()
        except Exception as e:
            last_exception = e

            # Don't retry on last attempt
            if attempt == config.max_retries:
                break
            if should_continue is not None and not should_continue():
                break

            delay = config.get_delay(attempt)
            logger.debug(
                "Fetch failed (attempt %d/%d), retrying in %.1fs...",
                attempt + 1,
                config.max_retries + 1,
                delay,
            )
            await asyncio.sleep(delay)

    # All retries exhausted
    raise last_exception  # type: ignore
