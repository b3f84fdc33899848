"""Retry logic with linear backoff for provider calls."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryConfig:
    """
    Configuration for retry behavior.

    Parameters
    ----------
    max_attempts : int
        Total number of attempts, including the first one
    base_delay : float
        Delay in seconds multiplied by the attempt index before each retry

    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 0.5) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def get_delay(self, attempt: int) -> float:
        """
        Calculate the wait after a failed attempt using linear backoff.

        Parameters
        ----------
        attempt : int
            Number of the attempt that just failed (1-indexed)

        Returns
        -------
        float
            Delay in seconds

        """
        return self.base_delay * attempt


def retry_call(
    func: Callable[[], T],
    config: RetryConfig,
    retry_on: tuple[type[BaseException], ...],
    *,
    label: str = "call",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Invoke ``func`` until it succeeds or the attempts are exhausted.

    Parameters
    ----------
    func : Callable[[], T]
        Zero-argument callable to invoke
    config : RetryConfig
        Attempt count and backoff
    retry_on : tuple[type[BaseException], ...]
        Exception types that trigger a retry; anything else propagates at once
    label : str
        Description used in log messages
    sleep : Callable[[float], None]
        Sleep function (injectable for tests)

    Returns
    -------
    T
        Result of the first successful invocation

    Raises
    ------
    Exception
        The last exception once every attempt failed

    """
    for attempt in range(1, config.max_attempts + 1):
        try:
            return func()
        except retry_on as e:
            # Don't wait after the last attempt
            if attempt == config.max_attempts:
                logger.debug("%s failed after %d attempts: %s", label, attempt, e)
                raise

            delay = config.get_delay(attempt)
            logger.debug(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                label,
                attempt,
                config.max_attempts,
                delay,
                e,
            )
            sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
