from .html import strip_resolved_links
from .loop import MAX_RESOLUTION_ROUNDS, ResourceResolutionLoop
from .resolver import (
    DefaultResolver,
    DefaultResourceResolver,
    ResourceResolver,
    assets_dir_resolver,
    build_resolver,
)

__all__ = [
    "MAX_RESOLUTION_ROUNDS",
    "DefaultResolver",
    "DefaultResourceResolver",
    "ResourceResolutionLoop",
    "ResourceResolver",
    "assets_dir_resolver",
    "build_resolver",
    "strip_resolved_links",
]
