"""
In-memory engine that implements the engine contract without doing any layout.

It discovers references with regular expressions, records every command it
receives and produces small deterministic outputs. Tests use it as the engine
double; the CLI can load it with `--engine docrender.engine.testing:create_recording_engine`
for smoke runs.
"""

from __future__ import annotations

import html as html_lib
import json
import re
from dataclasses import dataclass, field
from typing import Any

from docrender.engine.contract import EngineHooks, LogLevel, OutputFormat, ResourceType

_LINK_RE = re.compile(r"<link[^>]*href\s*=\s*([\"'])(.+?)\1[^>]*>", re.IGNORECASE)
_IMG_RE = re.compile(r"<img[^>]*src\s*=\s*([\"'])(.+?)\1[^>]*>", re.IGNORECASE)
_CSS_URL_RE = re.compile(r"url\(\s*([\"']?)([^\"')]+)\1\s*\)", re.IGNORECASE)

_BINARY_MAGIC = {
    OutputFormat.PNG.code: b"\x89PNG\r\n\x1a\n",
    OutputFormat.WEBP.code: b"RIFF\x00\x00\x00\x00WEBP",
    OutputFormat.PDF.code: b"%PDF-1.7\n",
}


@dataclass
class InstanceState:
    pending: dict[str, dict[str, Any]] = field(default_factory=dict)
    resources: dict[str, tuple[int, bytes]] = field(default_factory=dict)
    fonts: dict[str, bytes] = field(default_factory=dict)
    images: dict[str, tuple[str, int, int]] = field(default_factory=dict)
    css: list[str] = field(default_factory=list)
    document: str | None = None
    laid_out_width: int | None = None


class RecordingEngine:
    """Engine double recording every command in `calls` as `(command, args)`."""

    def __init__(
        self,
        hooks: EngineHooks | None = None,
        *,
        fail_on: set[str] | None = None,
        empty_output: bool = False,
    ):
        self.hooks = hooks
        self.fail_on = set(fail_on or ())
        self.empty_output = empty_output
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.log_level = int(LogLevel.NONE)
        self.created = 0
        self.destroyed = 0
        self.instances: dict[int, InstanceState] = {}
        self._next_handle = 1

    def _record(self, command: str, *args: Any) -> None:
        self.calls.append((command, args))
        if command in self.fail_on:
            raise RuntimeError(f"{command} failed")

    def _log(self, level: LogLevel, message: str) -> None:
        if self.hooks is not None:
            self.hooks.on_log(int(level), message)

    def calls_to(self, command: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == command]

    # Lifecycle

    def create_instance(self) -> int:
        self._record("create_instance")
        handle = self._next_handle
        self._next_handle += 1
        self.instances[handle] = InstanceState()
        self.created += 1
        self._log(LogLevel.DEBUG, f"instance {handle} created")
        return handle

    def destroy_instance(self, handle: int) -> None:
        self.destroyed += 1
        self._record("destroy_instance", handle)
        self.instances.pop(handle, None)

    def set_log_level(self, level: int) -> None:
        self._record("set_log_level", level)
        self.log_level = int(level)

    # Resources

    def discover(self, html: str) -> list[dict[str, Any]]:
        found: list[dict[str, Any]] = []
        for match in _LINK_RE.finditer(html):
            found.append({"type": ResourceType.CSS.value, "url": match.group(2), "name": ""})
        for match in _IMG_RE.finditer(html):
            found.append({"type": ResourceType.IMAGE.value, "url": match.group(2), "name": ""})
        for match in _CSS_URL_RE.finditer(html):
            found.append({"type": ResourceType.IMAGE.value, "url": match.group(2), "name": ""})
        return found

    def collect_resources(self, handle: int, html: str, width: int) -> None:
        self._record("collect_resources", handle, html, width)
        state = self.instances[handle]
        discovered = self.discover(html)
        # Stylesheets that were injected can reference fonts of their own
        for url, (type_code, data) in list(state.resources.items()):
            if type_code == ResourceType.code_for(ResourceType.CSS.value):
                for match in _CSS_URL_RE.finditer(data.decode("utf-8", errors="replace")):
                    discovered.append({"type": ResourceType.FONT.value, "url": match.group(2), "name": url})
        for entry in discovered:
            if entry["url"] not in state.resources:
                state.pending.setdefault(entry["url"], entry)

    def get_pending_resources(self, handle: int) -> str:
        self._record("get_pending_resources", handle)
        state = self.instances[handle]
        return json.dumps(list(state.pending.values()))

    def add_resource(self, handle: int, url: str, type_code: int, data: bytes) -> None:
        self._record("add_resource", handle, url, type_code, data)
        state = self.instances[handle]
        state.resources[url] = (type_code, bytes(data))
        state.pending.pop(url, None)

    def scan_css(self, handle: int, css: str) -> None:
        self._record("scan_css", handle, css)
        self.instances[handle].css.append(css)

    def load_font(self, handle: int, name: str, data: bytes) -> None:
        self._record("load_font", handle, name, data)
        self.instances[handle].fonts[name] = bytes(data)

    def load_image(self, handle: int, name: str, url: str, width: int, height: int) -> None:
        self._record("load_image", handle, name, url, width, height)
        self.instances[handle].images[name] = (url, width, height)

    # Rendering

    def init_document(self, handle: int, html: str, width: int) -> None:
        self._record("init_document", handle, html, width)
        self.instances[handle].document = html

    def layout_document(self, handle: int, width: int) -> None:
        self._record("layout_document", handle, width)
        self.instances[handle].laid_out_width = width

    def render_from_state(
        self, handle: int, width: int, height: int, format_code: int, text_to_paths: bool
    ) -> bytes | None:
        self._record("render_from_state", handle, width, height, format_code, text_to_paths)
        document = self.instances[handle].document
        if document is None:
            raise RuntimeError("no document initialized")
        return self._output([document], width, height, format_code)

    def render(
        self,
        handle: int,
        htmls: list[str],
        width: int,
        height: int,
        format_code: int,
        text_to_paths: bool,
    ) -> bytes | None:
        self._record("render", handle, list(htmls), width, height, format_code, text_to_paths)
        self._log(LogLevel.INFO, f"rendering {len(htmls)} document(s) at width {width}")
        return self._output(htmls, width, height, format_code)

    def _output(self, htmls: list[str], width: int, height: int, format_code: int) -> bytes | None:
        if self.empty_output:
            return None
        if format_code == OutputFormat.SVG.code:
            pages = "".join(f"<text>{html_lib.escape(page)}</text>" for page in htmls)
            svg = f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">{pages}</svg>'
            return svg.encode("utf-8")
        magic = _BINARY_MAGIC.get(format_code, b"")
        return magic + "\f".join(htmls).encode("utf-8")


def create_recording_engine(hooks: EngineHooks) -> RecordingEngine:
    """Engine factory for `RecordingEngine`."""
    return RecordingEngine(hooks)
