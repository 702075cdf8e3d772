"""
In-flight call de-duplication.

Concurrent callers asking for the same key share one pending call
instead of each starting their own.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    At-most-one-in-flight execution per key.

    The first caller for a key starts the work as a task; callers arriving
    while it is pending await the same task. The task is shielded, so a
    caller that is cancelled stops waiting without aborting the work for
    the others. Nothing is kept once the task finishes.
    """

    def __init__(self, name: str = "default"):
        """
        Initialize single-flight group.

        Args:
            name: Group name for logging
        """
        self.name = name
        self._pending: Dict[Hashable, "asyncio.Task[T]"] = {}

    async def run(self, key: Hashable, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``func`` for ``key`` unless a call for the same key is pending.

        Args:
            key: De-duplication key
            func: Zero-argument coroutine function producing the result

        Returns:
            Result of the shared call

        Raises:
            Exception: Whatever the shared call raised
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(func())
            self._pending[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug(f"SingleFlight '{self.name}': joining pending call for {key!r}")

        return await asyncio.shield(task)

    def in_flight(self) -> int:
        """Number of keys with a pending call."""
        return len(self._pending)

    def _forget(self, key: Hashable, task: "asyncio.Task[T]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark the outcome as retrieved when every waiter has gone away
        if not task.cancelled():
            task.exception()
