"""
Fixed-point resource resolution for one document.

Each round asks the engine to scan the document, resolves every newly reported
resource concurrently, and registers the results. The loop stops when nothing
new is reported or after `MAX_RESOLUTION_ROUNDS` rounds.
"""

from __future__ import annotations

import asyncio

from docrender.config.logging_config import get_logger
from docrender.engine.contract import EngineHandle, RequiredResource
from docrender.engine.module import EngineModule
from docrender.errors import ResourceResolutionFailure
from docrender.resources.resolver import DefaultResolver

log = get_logger(__name__)

MAX_RESOLUTION_ROUNDS = 10


class ResourceResolutionLoop:
    """
    Discover, resolve and register the resources of one document.

    `resolved_urls` is shared across all documents of a render call. A URL is
    added before its fetch is awaited and is never dispatched again in the same
    call, including after a failed resolution.
    """

    def __init__(
        self,
        module: EngineModule,
        handle: EngineHandle,
        resolver: DefaultResolver,
        resolved_urls: set[str],
        max_rounds: int = MAX_RESOLUTION_ROUNDS,
    ):
        self._module = module
        self._handle = handle
        self._resolver = resolver
        self._resolved_urls = resolved_urls
        self._max_rounds = max_rounds

    async def run(self, html: str, width: int) -> int:
        """Run until a fixed point or the round cap. Returns the number of rounds that dispatched work."""
        for round_index in range(self._max_rounds):
            await self._module.collect_resources(self._handle, html, width)
            resources = await self._module.get_pending_resources(self._handle)
            if not resources:
                return round_index

            batch = self._claim(resources)
            if not batch:
                return round_index

            log.debug(f"Resolution round {round_index + 1}: {len(batch)} resource(s)")
            results = await asyncio.gather(*(self._resolve_one(resource) for resource in batch))
            for resource, data in zip(batch, results):
                if data is not None:
                    await self._module.add_resource(self._handle, resource.url, resource.type_code, data)

        log.debug(f"Stopped resource resolution after {self._max_rounds} rounds")
        return self._max_rounds

    def _claim(self, resources: list[RequiredResource]) -> list[RequiredResource]:
        batch: list[RequiredResource] = []
        for resource in resources:
            # data: URLs are decoded by the engine itself
            if resource.is_data_url or resource.url in self._resolved_urls:
                continue
            self._resolved_urls.add(resource.url)
            batch.append(resource)
        return batch

    async def _resolve_one(self, resource: RequiredResource) -> bytes | None:
        try:
            data = await self._resolver(resource)
        except Exception as e:
            log.warning(str(ResourceResolutionFailure(resource.url, f"{type(e).__name__}: {e}")))
            return None
        if data is None:
            log.debug(f"Resource unavailable: {resource.url}")
            return None
        if not isinstance(data, (bytes, bytearray, memoryview)):
            log.warning(
                str(ResourceResolutionFailure(resource.url, f"resolver returned {type(data).__name__}"))
            )
            return None
        return bytes(data)
