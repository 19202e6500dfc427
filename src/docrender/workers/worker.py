"""
Worker-process side of the render pool.

Each worker process owns one event loop and one `Renderer`, so every process
has its own engine binding and log configuration.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from docrender.config.logging_config import get_logger
from docrender.engine.contract import LogLevel, load_engine_factory
from docrender.render.renderer import Renderer
from docrender.render.request import RenderRequest
from docrender.render.result import RenderResult
from docrender.resources.resolver import assets_dir_resolver

log = get_logger(__name__)

_renderer: Renderer | None = None
_loop: asyncio.AbstractEventLoop | None = None
_assets_dir: str | None = None


@dataclass(frozen=True)
class WorkerOutcome:
    result: RenderResult
    log_events: list[tuple[int, str]] = field(default_factory=list)


def initialize_worker(engine_factory: str, assets_dir: str | None = None) -> None:
    """Process initializer: load the engine factory and set up the process event loop."""
    global _renderer, _loop, _assets_dir

    _renderer = Renderer(load_engine_factory(engine_factory))
    _loop = asyncio.new_event_loop()
    asyncio.set_event_loop(_loop)
    _assets_dir = assets_dir
    log.debug(f"Render worker initialized with engine {engine_factory}")


async def _render(payload: dict[str, Any]) -> WorkerOutcome:
    assert _renderer is not None
    events: list[tuple[int, str]] = []

    def collect(level: LogLevel, message: str) -> None:
        events.append((int(level), message))

    request = RenderRequest.model_validate({**payload, "on_log": collect})
    if _assets_dir:
        request = request.model_copy(update={"resolve_resource": assets_dir_resolver(_assets_dir)})
    result = await _renderer.render(request)
    return WorkerOutcome(result=result, log_events=events)


ACTIONS: dict[str, Callable[..., Awaitable[Any]]] = {
    "render": _render,
}


def run_action(name: str, args: tuple[Any, ...]) -> Any:
    """Run a named action on this process's event loop."""
    if _loop is None or _renderer is None:
        raise RuntimeError("Render worker is not initialized")
    action = ACTIONS.get(name)
    if action is None:
        raise ValueError(f"Unknown worker action: {name}")
    return _loop.run_until_complete(action(*args))
