"""Sequential task queue that spaces out requests to a rate-limited source."""

import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any


class RateLimitedQueue:
    """
    Runs queued jobs one at a time with a fixed delay between them.

    At most one job is in flight, even when ``run`` is called from several
    threads. The delay is applied between consecutive jobs, not before the
    first one.

    Parameters
    ----------
    delay : float
        Seconds to wait between consecutive jobs
    sleep : Callable[[float], None]
        Sleep function (injectable for tests)

    """

    _lock = threading.Lock()

    def __init__(self, delay: float = 0.2, sleep: Callable[[float], None] = time.sleep) -> None:
        self.delay = delay
        self.sleep = sleep
        self._jobs: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def submit(self, func: Callable[..., Any], *args: Any) -> None:
        """Queue ``func(*args)`` for execution."""
        self._jobs.append((func, args))

    def __len__(self) -> int:
        return len(self._jobs)

    def run(self) -> list[Any]:
        """
        Drain the queue.

        Returns
        -------
        list[Any]
            Job results in submission order

        """
        results = []
        with self._lock:
            first = True
            while self._jobs:
                func, args = self._jobs.popleft()
                if not first and self.delay > 0:
                    self.sleep(self.delay)
                first = False
                results.append(func(*args))
        return results
