"""按源站限速."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def origin_of(url: str) -> str:
    """返回 URL 的源站（scheme + host[:port]），忽略路径."""
    parsed = urlparse(url)
    return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"


class RateLimiter:
    """保证同一源站的两次请求之间至少间隔 `min_delay` 秒.

    每个源站的“检查并记录”在该源站的锁内完成，
    同一源站的并发调用方会依次排队，不会在同一时刻同时放行。
    """

    def __init__(
        self,
        min_delay: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._last_request: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    async def _lock_for(self, origin: str) -> asyncio.Lock:
        async with self._locks_guard:
            lock = self._locks.get(origin)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[origin] = lock
            return lock

    async def wait_if_needed(self, url: str) -> None:
        """必要时等待，然后记录本次请求时间."""
        origin = origin_of(url)
        lock = await self._lock_for(origin)

        async with lock:
            last = self._last_request.get(origin)
            if last is not None:
                remaining = self.min_delay - (self._clock() - last)
                if remaining > 0:
                    logger.debug(f"限速等待 {remaining:.2f}s: {origin}")
                    await self._sleep(remaining)
            self._last_request[origin] = self._clock()
