"""Analysis concurrency layer.

Architecture:
    FastAPI (async) -> asyncio.Semaphore(N) -> ThreadPoolExecutor(N) -> pixel analysis

Requests beyond the semaphore limit queue for ``queue_timeout`` seconds and a
running analysis is bounded by ``analysis_timeout`` seconds; both raise
TimeoutError so the caller can fall back to text-only output.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from pixelscope.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AnalysisPool:
    """Manages the semaphore and thread pool for image analysis."""

    def __init__(self, settings: Settings) -> None:
        self._semaphore = asyncio.Semaphore(settings.max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="image-analysis",
        )
        self._queue_timeout = settings.queue_timeout
        self._analysis_timeout = settings.analysis_timeout
        self._active_count: int = 0
        self._queue_depth: int = 0
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Submit a synchronous function to the analysis thread pool.

        Acquires the semaphore (with timeout) and runs the function in the
        executor under the analysis timeout. The slot is released when the
        worker thread finishes, so a timed-out analysis keeps its slot until
        it actually stops.

        Raises:
            TimeoutError: If no slot frees up in time, or the analysis itself
                runs too long.
        """
        with self._counter_lock:
            self._queue_depth += 1
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self._queue_timeout)
        finally:
            with self._counter_lock:
                self._queue_depth -= 1

        loop = asyncio.get_running_loop()
        with self._counter_lock:
            self._active_count += 1
        try:
            job = self._executor.submit(func, *args)
        except BaseException:
            self._finish(loop)
            raise
        job.add_done_callback(lambda _: self._finish(loop))
        return await asyncio.wait_for(asyncio.wrap_future(job), timeout=self._analysis_timeout)

    def _finish(self, loop: asyncio.AbstractEventLoop) -> None:
        with self._counter_lock:
            self._active_count -= 1
        if loop.is_closed():
            return
        loop.call_soon_threadsafe(self._semaphore.release)

    @property
    def active_count(self) -> int:
        """Number of currently running analysis tasks."""
        with self._counter_lock:
            return self._active_count

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for a semaphore slot."""
        with self._counter_lock:
            return self._queue_depth

    def shutdown(self) -> None:
        """Shut down the thread pool executor."""
        logger.debug("Shutting down analysis pool")
        self._executor.shutdown(wait=True)
