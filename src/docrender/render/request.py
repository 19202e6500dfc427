from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from docrender.engine.contract import LogLevel, LogSink, OutputFormat
from docrender.resources.resolver import ResourceResolver


class FontAsset(BaseModel):
    name: str
    data: bytes


class ImageAsset(BaseModel):
    name: str
    url: str
    width: int = 0
    height: int = 0


class RenderRequest(BaseModel):
    """
    Input of one render call.

    `value` is a document, or an ordered list of documents rendered as one
    multi-page output. When `value` is empty and `url` is set, the document is
    fetched from `url`, which also becomes the default `base_url`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: str | list[str] | None = None
    url: Optional[str] = None
    width: int = Field(gt=0)
    height: int = Field(default=0, ge=0)
    format: OutputFormat = OutputFormat.SVG
    text_to_paths: bool = True
    resolve_resource: Optional[ResourceResolver] = None
    fonts: list[FontAsset] = Field(default_factory=list)
    images: list[ImageAsset] = Field(default_factory=list)
    css: Optional[str] = None
    base_url: Optional[str] = None
    user_agent: Optional[str] = None
    log_level: LogLevel = LogLevel.NONE
    on_log: Optional[LogSink] = None

    def documents(self) -> list[str]:
        if self.value is None:
            return []
        if isinstance(self.value, str):
            return [self.value] if self.value else []
        return list(self.value)

    def has_content(self) -> bool:
        return bool(self.documents())
