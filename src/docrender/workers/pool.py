"""
Parallel render dispatch.

Render calls are independent, so the pool runs each one in a separate worker
process with its own engine binding, bounded by `max_parallel`.

Example:
    async with RenderWorkerPool("my_engine.binding:create_engine", max_parallel=4) as pool:
        results = await asyncio.gather(*(pool.render(request) for request in requests))
"""

from __future__ import annotations

import asyncio
import multiprocessing
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Any

from docrender.concurrency.async_utils import AsyncSemaphore
from docrender.config.environment import Environment
from docrender.config.logging_config import get_logger
from docrender.engine.contract import LogLevel
from docrender.errors import ConfigurationError
from docrender.render.request import RenderRequest
from docrender.render.result import RenderResult
from docrender.workers.worker import WorkerOutcome, initialize_worker, run_action

log = get_logger(__name__)


class RenderWorkerPool:
    """
    Process pool for render calls.

    Requests cross the process boundary without their callables: `on_log`
    receives the worker's engine log events after the call returns, and
    resolver overrides are not supported (use `assets_dir` instead).
    """

    def __init__(
        self,
        engine_factory: str,
        max_parallel: int | None = None,
        assets_dir: str | Path | None = None,
        mp_context: multiprocessing.context.BaseContext | None = None,
    ):
        if max_parallel is None:
            max_parallel = Environment.get_max_workers()
        if max_parallel <= 0:
            raise ValueError("max_parallel must be a positive integer")
        self._max_parallel = max_parallel
        self._executor = ProcessPoolExecutor(
            max_workers=max_parallel,
            mp_context=mp_context,
            initializer=initialize_worker,
            initargs=(engine_factory, str(assets_dir) if assets_dir is not None else None),
        )
        self._semaphore = AsyncSemaphore(max_parallel)
        self._closed = False

    @property
    def max_parallel(self) -> int:
        return self._max_parallel

    async def execute(self, name: str, *args: Any) -> Any:
        """Run the named worker action and return its result."""
        if self._closed:
            raise RuntimeError("RenderWorkerPool is closed")
        async with self._semaphore:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, run_action, name, args)

    async def render(self, request: RenderRequest) -> RenderResult:
        if request.resolve_resource is not None:
            raise ConfigurationError("Resolver overrides cannot be sent to worker processes; use assets_dir")
        payload = request.model_dump(exclude={"on_log", "resolve_resource"})
        outcome: WorkerOutcome = await self.execute("render", payload)
        if request.on_log is not None:
            for level, message in outcome.log_events:
                request.on_log(LogLevel(level), message)
        return outcome.result

    def close(self, wait: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        log.debug("Render worker pool shut down")

    async def __aenter__(self) -> "RenderWorkerPool":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await asyncio.to_thread(self.close)
