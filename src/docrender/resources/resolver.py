"""
Resolver chain.

A resolver turns a `RequiredResource` into bytes, or None when the resource is
unavailable. Callers may supply an override that receives the resource and the
default resolver, and decides per resource whether to delegate.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Awaitable, Callable, Union
from urllib.parse import urljoin

import httpx

from docrender.concurrency.async_utils import maybe_await
from docrender.config.logging_config import get_logger
from docrender.engine.contract import RequiredResource
from docrender.io.http_fetch import fetch_bytes
from docrender.io.local_files import file_url_to_path, read_local_file
from docrender.resources.google_fonts import is_provider_url, resolve_google_fonts

log = get_logger(__name__)

ResolvedData = Union[bytes, bytearray, memoryview, None]
DefaultResolver = Callable[[RequiredResource], Awaitable[bytes | None]]
ResourceResolver = Callable[
    [RequiredResource, DefaultResolver],
    Union[Awaitable[ResolvedData], ResolvedData],
]

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)
_URL_BASE_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def is_absolute_url(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


class DefaultResourceResolver:
    """
    Host resolver: font-provider lookups, absolute URLs over HTTP, and relative
    URLs from the local filesystem first, then against the base URL.

    Never raises; any failure resolves to None.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        user_agent: str | None = None,
        allow_local_files: bool = True,
    ):
        self._client = client
        self._base_url = base_url
        self._user_agent = user_agent
        self._allow_local_files = allow_local_files

    async def __call__(self, resource: RequiredResource) -> bytes | None:
        try:
            return await self._resolve(resource)
        except Exception as e:
            log.warning(f"Failed to resolve resource: {resource.url} ({type(e).__name__}: {e})")
            return None

    def _local_base_dir(self) -> Path | None:
        base = self._base_url
        if not base:
            return Path.cwd()
        if base.startswith("file://"):
            return file_url_to_path(base)
        if _URL_BASE_RE.match(base) or base.startswith("data:"):
            return None
        return Path(base)

    async def _resolve(self, resource: RequiredResource) -> bytes | None:
        url = resource.url
        if is_provider_url(url):
            return await resolve_google_fonts(resource, self._client, self._user_agent)

        absolute = is_absolute_url(url)
        if not absolute and self._allow_local_files:
            base_dir = self._local_base_dir()
            if base_dir is not None:
                data = await read_local_file(base_dir / url.lstrip("/\\"))
                if data is not None:
                    return data

        final_url: str | None = None
        if absolute:
            final_url = url
        elif self._base_url and is_absolute_url(self._base_url):
            final_url = urljoin(self._base_url, url)
        if final_url is None:
            return None

        if final_url.startswith("file://"):
            if not self._allow_local_files:
                return None
            return await read_local_file(file_url_to_path(final_url))
        return await fetch_bytes(self._client, final_url, self._user_agent)


def build_resolver(override: ResourceResolver | None, default: DefaultResolver) -> DefaultResolver:
    """Return the single-argument resolver used by the resolution loop."""
    if override is None:
        return default

    async def resolve(resource: RequiredResource) -> ResolvedData:
        return await maybe_await(override(resource.model_copy(), default))

    return resolve  # type: ignore[return-value]


def assets_dir_resolver(assets_dir: str | Path) -> ResourceResolver:
    """Override that serves relative references from `assets_dir` before delegating."""
    root = Path(assets_dir)

    async def resolve(resource: RequiredResource, default: DefaultResolver) -> bytes | None:
        if not resource.url.startswith(("http", "data:")) and not is_provider_url(resource.url):
            data = await read_local_file(root / resource.url.lstrip("/\\"))
            if data is not None:
                return data
        return await default(resource)

    return resolve
