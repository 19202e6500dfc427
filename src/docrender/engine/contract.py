"""
Engine contract.

The rendering engine (layout, CSS cascade, font shaping, rasterization) is an
external component. This module fixes the command surface docrender drives it
through and the value types that cross that boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Awaitable, Callable, Protocol, Sequence, Union

from pydantic import BaseModel


class OutputFormat(str, Enum):
    SVG = "svg"
    PNG = "png"
    WEBP = "webp"
    PDF = "pdf"

    @property
    def code(self) -> int:
        return _FORMAT_CODES[self]

    @property
    def is_text(self) -> bool:
        return self is OutputFormat.SVG


_FORMAT_CODES = {
    OutputFormat.SVG: 0,
    OutputFormat.PNG: 1,
    OutputFormat.WEBP: 2,
    OutputFormat.PDF: 3,
}


class ResourceType(str, Enum):
    FONT = "font"
    CSS = "css"
    IMAGE = "image"

    @classmethod
    def code_for(cls, kind: str | None) -> int:
        """Type code passed to `add_resource`; unknown kinds use the font code."""
        if kind == cls.IMAGE.value:
            return 2
        if kind == cls.CSS.value:
            return 3
        return 1


class LogLevel(IntEnum):
    NONE = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4


LogSink = Callable[[LogLevel, str], None]


class RequiredResource(BaseModel):
    """A resource the engine discovered while scanning a document."""

    type: str = ResourceType.FONT.value
    url: str
    name: str = ""
    redraw_on_ready: bool = False

    @property
    def type_code(self) -> int:
        return ResourceType.code_for(self.type)

    @property
    def is_data_url(self) -> bool:
        return self.url.startswith("data:")


EngineHandle = Any
PendingResources = Union[str, Sequence[Any], None]


class EngineBinding(Protocol):
    """
    Command surface of a loaded engine.

    Every command may return its value directly or return an awaitable of it.
    """

    def create_instance(self) -> EngineHandle: ...

    def destroy_instance(self, handle: EngineHandle) -> None: ...

    def collect_resources(self, handle: EngineHandle, html: str, width: int) -> None: ...

    def get_pending_resources(self, handle: EngineHandle) -> PendingResources: ...

    def add_resource(self, handle: EngineHandle, url: str, type_code: int, data: bytes) -> None: ...

    def scan_css(self, handle: EngineHandle, css: str) -> None: ...

    def load_font(self, handle: EngineHandle, name: str, data: bytes) -> None: ...

    def load_image(self, handle: EngineHandle, name: str, url: str, width: int, height: int) -> None: ...

    def set_log_level(self, level: int) -> None: ...

    def init_document(self, handle: EngineHandle, html: str, width: int) -> None: ...

    def layout_document(self, handle: EngineHandle, width: int) -> None: ...

    def render_from_state(
        self,
        handle: EngineHandle,
        width: int,
        height: int,
        format_code: int,
        text_to_paths: bool,
    ) -> bytes | None: ...

    def render(
        self,
        handle: EngineHandle,
        htmls: list[str],
        width: int,
        height: int,
        format_code: int,
        text_to_paths: bool,
    ) -> bytes | None: ...


@dataclass(frozen=True)
class EngineHooks:
    """Log-routing callables handed to an engine factory at construction."""

    on_log: Callable[[int, str], None]
    print: Callable[[str], None]
    print_err: Callable[[str], None]


EngineFactory = Callable[[EngineHooks], Union[EngineBinding, Awaitable[EngineBinding]]]


def load_engine_factory(path: str) -> EngineFactory:
    """Import an engine factory from a `package.module:callable` path."""
    import importlib

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Engine factory must look like 'package.module:callable', got {path!r}")
    module = importlib.import_module(module_name)
    factory = module
    for part in attr.split("."):
        factory = getattr(factory, part)
    if not callable(factory):
        raise TypeError(f"Engine factory {path!r} is not callable")
    return factory  # type: ignore[return-value]
