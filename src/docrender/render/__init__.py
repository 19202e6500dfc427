from .renderer import Renderer
from .request import FontAsset, ImageAsset, RenderRequest
from .result import BinaryResult, RenderResult, TextResult

__all__ = [
    "BinaryResult",
    "FontAsset",
    "ImageAsset",
    "RenderRequest",
    "RenderResult",
    "Renderer",
    "TextResult",
]
