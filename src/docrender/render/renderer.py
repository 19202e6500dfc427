"""
Render session orchestration.

`Renderer.render()` validates a request, swaps in its log configuration,
creates one engine instance, preloads caller assets, resolves every
document's resources, and asks the engine for the final output. The instance
is destroyed and the log configuration restored on every exit path.

Log configuration belongs to the renderer's execution context, so a
`Renderer` serves one render call at a time. Run independent renders in
parallel through `docrender.workers.pool.RenderWorkerPool`.
"""

from __future__ import annotations

import httpx

from docrender.config.environment import Environment
from docrender.config.logging_config import get_logger
from docrender.engine.contract import EngineFactory, EngineHandle, OutputFormat
from docrender.engine.module import EngineModule
from docrender.errors import ConfigurationError
from docrender.io.http_fetch import fetch_html, http_client_scope
from docrender.render.request import RenderRequest
from docrender.render.result import RenderResult, make_result
from docrender.resources.html import strip_resolved_links
from docrender.resources.loop import ResourceResolutionLoop
from docrender.resources.resolver import DefaultResourceResolver, build_resolver

log = get_logger(__name__)


class Renderer:
    def __init__(
        self,
        engine: EngineFactory | EngineModule,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._module = engine if isinstance(engine, EngineModule) else EngineModule(engine)
        self._http_client = http_client

    @property
    def module(self) -> EngineModule:
        return self._module

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Render the request's documents into a single output.

        Returns:
            `TextResult` for SVG, `BinaryResult` for every other format. An empty
            engine result is returned as an empty value, not an error.

        Raises:
            ConfigurationError: Neither document text nor a URL yielded content.
            FetchError: The document URL could not be fetched.
            EngineError: The engine failed in any phase.
        """
        async with http_client_scope(self._http_client) as client:
            return await self._render(request, client)

    async def _render(self, request: RenderRequest, client: httpx.AsyncClient) -> RenderResult:
        user_agent = request.user_agent or Environment.get_user_agent()
        base_url = request.base_url
        documents = request.documents()

        if not documents and request.url:
            if not base_url:
                base_url = request.url
            text = await fetch_html(client, request.url, user_agent)
            documents = [text] if text else []

        if not documents:
            raise ConfigurationError("Either 'value' or 'url' must be provided.")

        module = self._module
        resolver = build_resolver(
            request.resolve_resource,
            DefaultResourceResolver(client, base_url=base_url, user_agent=user_agent),
        )
        log.debug(f"Rendering {len(documents)} document(s) as {request.format.value} at width {request.width}")

        async with module.log_config(request.log_level, request.on_log):
            async with module.instance() as handle:
                await self._preload(handle, request)

                resolved_urls: set[str] = set()
                for document in documents:
                    loop = ResourceResolutionLoop(module, handle, resolver, resolved_urls)
                    await loop.run(document, request.width)

                processed = [strip_resolved_links(document, resolved_urls) for document in documents]
                raw = await module.render(
                    handle,
                    processed,
                    request.width,
                    request.height,
                    request.format.code,
                    request.text_to_paths,
                )

        return make_result(request.format, raw)

    async def _preload(self, handle: EngineHandle, request: RenderRequest) -> None:
        module = self._module
        for font in request.fonts:
            await module.load_font(handle, font.name, font.data)
        for image in request.images:
            await module.load_image(handle, image.name, image.url, image.width, image.height)
        if request.css:
            await module.scan_css(handle, request.css)

    # Step-wise rendering against a retained instance

    async def init_document(self, html: str, width: int) -> EngineHandle:
        """Create an instance holding `html`. Release it with `destroy_instance()`."""
        handle = await self._module.create_instance()
        try:
            await self._module.init_document(handle, html, width)
        except BaseException:
            await self._module.destroy_instance(handle)
            raise
        return handle

    async def layout_document(self, handle: EngineHandle, width: int) -> None:
        await self._module.layout_document(handle, width)

    async def render_from_state(
        self,
        handle: EngineHandle,
        width: int,
        height: int = 0,
        format: OutputFormat = OutputFormat.SVG,
        text_to_paths: bool = True,
    ) -> RenderResult:
        output_format = OutputFormat(format)
        raw = await self._module.render_from_state(handle, width, height, output_format.code, text_to_paths)
        return make_result(output_format, raw)

    async def destroy_instance(self, handle: EngineHandle) -> None:
        await self._module.destroy_instance(handle)
