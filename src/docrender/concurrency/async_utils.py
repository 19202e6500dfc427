import asyncio
import inspect
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class AsyncSemaphore:
    """
    An async semaphore with timeout support for concurrency control.

    Adds to asyncio.Semaphore:
    - Built-in timeout support via the `acquire` method
    - Context manager support for automatic release

    Example:
        sem = AsyncSemaphore(max_tasks=4)

        async with sem:
            await dispatch_render()
    """

    def __init__(self, max_tasks: int):
        """
        Initialize the semaphore with a maximum number of concurrent tasks.

        Args:
            max_tasks (int): Maximum number of tasks that can hold the semaphore at once.
                             Must be greater than 0.

        Raises:
            ValueError: If max_tasks is not a positive integer.
        """
        if max_tasks <= 0:
            raise ValueError("max_tasks must be a positive integer")
        self._semaphore = asyncio.Semaphore(max_tasks)
        self._max_tasks = max_tasks
        self._in_use = 0

    @property
    def max_tasks(self) -> int:
        """Return the maximum number of concurrent tasks allowed."""
        return self._max_tasks

    @property
    def available(self) -> int:
        """Return the number of available slots for new tasks."""
        return self._max_tasks - self._in_use

    async def acquire(self, timeout: Optional[float] = None) -> bool:
        """
        Acquire the semaphore with an optional timeout.

        Args:
            timeout (Optional[float]): Maximum time to wait in seconds. If None (default),
                                      wait indefinitely. If <= 0, attempt to acquire
                                      without waiting.

        Returns:
            bool: True if the semaphore was acquired, False if the timeout expired.
        """
        if timeout is None:
            await self._semaphore.acquire()
        elif timeout <= 0:
            if self._semaphore.locked():
                return False
            await self._semaphore.acquire()
        else:
            try:
                await asyncio.wait_for(self._semaphore.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                return False
        self._in_use += 1
        return True

    def release(self) -> None:
        """Release the semaphore, allowing another task to acquire it."""
        self._in_use -= 1
        self._semaphore.release()

    async def __aenter__(self) -> "AsyncSemaphore":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    def locked(self) -> bool:
        """Return True if the semaphore cannot be acquired immediately."""
        return self._semaphore.locked()


async def maybe_await(value: "T | Awaitable[T]") -> T:
    """Return `value`, awaiting it first when it is awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]
