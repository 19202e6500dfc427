"""
Engine module lifecycle.

`EngineModule` lazily constructs one engine binding per execution context and
memoizes it, so concurrent first callers share a single construction. It owns
the log configuration for that binding and exposes every engine command as an
awaitable method that reports failures as `EngineError`.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from pydantic import TypeAdapter, ValidationError

from docrender.concurrency.async_once import AsyncOnce
from docrender.concurrency.async_utils import maybe_await
from docrender.config.logging_config import get_logger
from docrender.engine.contract import (
    EngineBinding,
    EngineFactory,
    EngineHandle,
    EngineHooks,
    LogLevel,
    LogSink,
    PendingResources,
    RequiredResource,
)
from docrender.engine.log_state import LogConfig, LogState
from docrender.errors import DocRenderError, EngineError

log = get_logger(__name__)

_PENDING_ADAPTER = TypeAdapter(list[RequiredResource])


def parse_pending_resources(raw: PendingResources) -> list[RequiredResource]:
    """Normalize the engine's pending-resource report into model instances."""
    if raw is None or raw == "":
        return []
    items: Any = raw
    if isinstance(raw, (bytes, bytearray)):
        items = raw.decode("utf-8")
    if isinstance(items, str):
        try:
            items = json.loads(items)
        except json.JSONDecodeError as e:
            raise EngineError("get_pending_resources", f"invalid resource list: {e}") from e
    if items is None:
        return []
    try:
        return _PENDING_ADAPTER.validate_python(list(items))
    except (TypeError, ValidationError) as e:
        raise EngineError("get_pending_resources", f"invalid resource list: {e}") from e


class EngineModule:
    """
    One shared engine binding plus its log configuration.

    Initialization failures are cached: every later `get_engine()` re-raises
    the same error until `reset()` is called.
    """

    def __init__(self, factory: EngineFactory):
        self._factory = factory
        self._once: AsyncOnce[EngineBinding] = AsyncOnce()
        self._log_state = LogState()

    async def get_engine(self) -> EngineBinding:
        return await self._once.run(self._initialize)

    def reset(self) -> None:
        """Drop a finished or failed initialization so the next call constructs again."""
        self._once.reset()
        self._log_state = LogState()

    @property
    def initialized(self) -> bool:
        return self._once.done and self._once.exception is None

    async def _initialize(self) -> EngineBinding:
        hooks = EngineHooks(
            on_log=self._log_state_emit,
            print=lambda text: self._log_state_emit(LogLevel.INFO, text),
            print_err=lambda text: self._log_state_emit(LogLevel.ERROR, text),
        )
        try:
            binding = await maybe_await(self._factory(hooks))
        except DocRenderError:
            raise
        except Exception as e:
            raise EngineError("initialization", f"{type(e).__name__}: {e}") from e
        await self._invoke(binding, "set_log_level", int(self._log_state.level))
        log.debug(f"Engine binding initialized: {type(binding).__name__}")
        return binding

    def _log_state_emit(self, level: int, message: str) -> None:
        # Looked up on every call so a reset() state is picked up by the engine's hooks
        self._log_state.emit(level, message)

    # Log configuration

    @property
    def log_level(self) -> LogLevel:
        return self._log_state.level

    @property
    def log_sink(self) -> LogSink | None:
        return self._log_state.sink

    async def set_log_level(self, level: LogLevel | int) -> None:
        level = LogLevel(level)
        await self._call("set_log_level", int(level))
        self._log_state.set_level(level)

    def set_log_sink(self, sink: LogSink | None) -> None:
        self._log_state.set_sink(sink)

    def log_snapshot(self) -> LogConfig:
        return self._log_state.snapshot()

    @asynccontextmanager
    async def log_config(self, level: LogLevel | int, sink: LogSink | None) -> AsyncIterator[LogConfig]:
        """Install a log configuration and restore the previous one on exit."""
        previous = self._log_state.snapshot()
        await self.set_log_level(level)
        self.set_log_sink(sink)
        try:
            yield previous
        finally:
            self.set_log_sink(previous.sink)
            await self.set_log_level(previous.level)

    # Instance lifecycle

    @asynccontextmanager
    async def instance(self) -> AsyncIterator[EngineHandle]:
        """Create an engine instance and destroy it exactly once on exit."""
        handle = await self.create_instance()
        try:
            yield handle
        finally:
            await self.destroy_instance(handle)

    # Engine commands

    async def _invoke(self, binding: EngineBinding, phase: str, *args: Any) -> Any:
        method = getattr(binding, phase, None)
        if method is None:
            raise EngineError(phase, "command not supported by this engine")
        try:
            return await maybe_await(method(*args))
        except DocRenderError:
            raise
        except Exception as e:
            raise EngineError(phase, f"{type(e).__name__}: {e}") from e

    async def _call(self, phase: str, *args: Any) -> Any:
        binding = await self.get_engine()
        return await self._invoke(binding, phase, *args)

    async def create_instance(self) -> EngineHandle:
        return await self._call("create_instance")

    async def destroy_instance(self, handle: EngineHandle) -> None:
        await self._call("destroy_instance", handle)

    async def collect_resources(self, handle: EngineHandle, html: str, width: int) -> None:
        await self._call("collect_resources", handle, html, width)

    async def get_pending_resources(self, handle: EngineHandle) -> list[RequiredResource]:
        raw = await self._call("get_pending_resources", handle)
        return parse_pending_resources(raw)

    async def add_resource(self, handle: EngineHandle, url: str, type_code: int, data: bytes) -> None:
        await self._call("add_resource", handle, url, type_code, data)

    async def scan_css(self, handle: EngineHandle, css: str) -> None:
        await self._call("scan_css", handle, css)

    async def load_font(self, handle: EngineHandle, name: str, data: bytes) -> None:
        await self._call("load_font", handle, name, data)

    async def load_image(self, handle: EngineHandle, name: str, url: str, width: int, height: int) -> None:
        await self._call("load_image", handle, name, url, width, height)

    async def init_document(self, handle: EngineHandle, html: str, width: int) -> None:
        await self._call("init_document", handle, html, width)

    async def layout_document(self, handle: EngineHandle, width: int) -> None:
        await self._call("layout_document", handle, width)

    async def render_from_state(
        self,
        handle: EngineHandle,
        width: int,
        height: int,
        format_code: int,
        text_to_paths: bool,
    ) -> bytes | None:
        return await self._call("render_from_state", handle, width, height, format_code, text_to_paths)

    async def render(
        self,
        handle: EngineHandle,
        htmls: list[str],
        width: int,
        height: int,
        format_code: int,
        text_to_paths: bool,
    ) -> bytes | None:
        return await self._call("render", handle, htmls, width, height, format_code, text_to_paths)
