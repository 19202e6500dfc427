from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from docrender.engine.contract import OutputFormat


@dataclass(frozen=True)
class TextResult:
    """Output of a text-like format (SVG)."""

    text: str

    @property
    def value(self) -> str:
        return self.text

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class BinaryResult:
    """Output of a binary format (PNG, WebP, PDF)."""

    data: bytes

    @property
    def value(self) -> bytes:
        return self.data

    @property
    def is_empty(self) -> bool:
        return not self.data


RenderResult = Union[TextResult, BinaryResult]


def make_result(output_format: OutputFormat, raw: bytes | None) -> RenderResult:
    """Wrap the engine's raw output; a missing result becomes an empty one."""
    if output_format.is_text:
        return TextResult(bytes(raw).decode("utf-8", errors="replace") if raw else "")
    return BinaryResult(bytes(raw) if raw else b"")
