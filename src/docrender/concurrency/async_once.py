import asyncio
from typing import Any, Callable, Coroutine, Generic, TypeVar

T = TypeVar("T")


class AsyncOnceError(Exception):
    """Raised when an attempt is made to use an AsyncOnce guard incorrectly."""

    pass


class AsyncOnce(Generic[T]):
    """
    A one-time execution guard for async initialization.

    Ensures that an async function is only executed once, even when called
    concurrently from multiple coroutines. Additional calls await the first
    call's completion and return the same result or raise the same exception.

    A failed (or finished) execution stays cached until `reset()` is called,
    after which the next `run()` starts a fresh execution.

    Example:
        once = AsyncOnce()

        async def initialize():
            return await load_engine()

        engine1 = await once.run(initialize)
        engine2 = await once.run(initialize)
        assert engine1 is engine2
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[T] | None = None

    def run(self, func: Callable[[], Coroutine[Any, Any, T]]) -> "asyncio.Future[T]":
        """
        Start `func()` on the first call and return the shared future.

        The coroutine is only created on the first call, so later callers do not
        leave un-awaited coroutines behind.

        Args:
            func: Zero-argument callable returning the coroutine to execute once.

        Returns:
            A future that resolves to the result of the coroutine.
        """
        if self._task is None:
            self._task = asyncio.ensure_future(func())
        return self._task

    def reset(self) -> None:
        """
        Forget the cached execution so the next `run()` starts again.

        Raises:
            AsyncOnceError: If the execution is still in flight.
        """
        if self._task is not None and not self._task.done():
            raise AsyncOnceError("Cannot reset while the guarded call is still running")
        if self._task is not None and not self._task.cancelled():
            # Mark a cached exception as retrieved before dropping the task
            self._task.exception()
        self._task = None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def done(self) -> bool:
        """Return True if the one-time operation has completed."""
        return self._task is not None and self._task.done()

    @property
    def result(self) -> T | None:
        """Return the cached result if available."""
        if self.done and self.exception is None:
            assert self._task is not None
            return self._task.result()
        return None

    @property
    def exception(self) -> BaseException | None:
        """Return the cached exception if one was raised."""
        if not self.done:
            return None
        assert self._task is not None
        if self._task.cancelled():
            return asyncio.CancelledError()
        return self._task.exception()
