"""Optional per-pull-request serialisation of workflows."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class PullRequestLocks:
    """
    Single-flight guard keyed by pull request URL.

    When disabled, guard() is a no-op and concurrent deliveries for the same
    PR may race. Locks only cover one process.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def guard(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block."""
        if not self.enabled:
            yield
            return

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        if lock.locked():
            logger.info(f"Waiting for in-flight delivery on {key}")
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
