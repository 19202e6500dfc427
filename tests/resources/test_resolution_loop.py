import json

import pytest

from docrender.engine.contract import RequiredResource
from docrender.engine.module import EngineModule
from docrender.engine.testing import RecordingEngine
from docrender.errors import EngineError
from docrender.resources.html import strip_resolved_links
from docrender.resources.loop import MAX_RESOLUTION_ROUNDS, ResourceResolutionLoop


class StaticResolver:
    """Serve bytes from a url -> data table and record every call."""

    def __init__(self, table=None, failing=()):
        self.table = dict(table or {})
        self.failing = set(failing)
        self.calls: list[str] = []

    async def __call__(self, resource: RequiredResource):
        self.calls.append(resource.url)
        if resource.url in self.failing:
            raise OSError(f"cannot read {resource.url}")
        return self.table.get(resource.url)


class EndlessEngine(RecordingEngine):
    """Reports a brand-new resource on every scan."""

    def get_pending_resources(self, handle):
        self._record("get_pending_resources", handle)
        return json.dumps([{"type": "image", "url": f"gen-{len(self.calls)}.png"}])


class DuplicatingEngine(RecordingEngine):
    def get_pending_resources(self, handle):
        raw = json.loads(super().get_pending_resources(handle))
        return json.dumps(raw + raw)


async def _start(engine_cls=RecordingEngine, **kwargs):
    engine = None

    def factory(hooks):
        nonlocal engine
        engine = engine_cls(hooks, **kwargs)
        return engine

    module = EngineModule(factory)
    handle = await module.create_instance()
    return module, engine, handle


class TestResourceResolutionLoop:
    @pytest.mark.asyncio
    async def test_no_resources_finishes_immediately(self):
        module, engine, handle = await _start()
        resolver = StaticResolver()

        rounds = await ResourceResolutionLoop(module, handle, resolver, set()).run("<p>plain</p>", 800)

        assert rounds == 0
        assert resolver.calls == []
        assert len(engine.calls_to("collect_resources")) == 1

    @pytest.mark.asyncio
    async def test_registers_with_type_codes(self):
        module, engine, handle = await _start()
        html = '<link rel="stylesheet" href="a.css"><img src="b.png">'
        resolver = StaticResolver({"a.css": b"p {}", "b.png": b"png"})

        await ResourceResolutionLoop(module, handle, resolver, set()).run(html, 640)

        added = {args[1]: args[2] for args in engine.calls_to("add_resource")}
        assert added == {"a.css": 3, "b.png": 2}
        assert engine.calls_to("collect_resources")[0] == (handle, html, 640)

    @pytest.mark.asyncio
    async def test_stylesheet_references_resolved_in_later_round(self):
        module, engine, handle = await _start()
        html = '<link rel="stylesheet" href="fonts.css">'
        resolver = StaticResolver(
            {
                "fonts.css": b"@font-face { src: url('inter.woff2'); }",
                "inter.woff2": b"font",
            }
        )

        rounds = await ResourceResolutionLoop(module, handle, resolver, set()).run(html, 800)

        assert rounds == 2
        assert resolver.calls == ["fonts.css", "inter.woff2"]
        added = {args[1]: args[2] for args in engine.calls_to("add_resource")}
        assert added == {"fonts.css": 3, "inter.woff2": 1}

    @pytest.mark.asyncio
    async def test_each_url_dispatched_once(self):
        module, engine, handle = await _start(DuplicatingEngine)
        resolver = StaticResolver({"a.png": b"a"})

        await ResourceResolutionLoop(module, handle, resolver, set()).run('<img src="a.png">', 800)

        assert resolver.calls == ["a.png"]
        assert len(engine.calls_to("add_resource")) == 1

    @pytest.mark.asyncio
    async def test_unresolved_url_not_retried(self):
        module, engine, handle = await _start()
        resolver = StaticResolver()
        resolved_urls: set[str] = set()

        rounds = await ResourceResolutionLoop(module, handle, resolver, resolved_urls).run(
            '<img src="missing.png">', 800
        )

        assert rounds == 1
        assert resolver.calls == ["missing.png"]
        assert resolved_urls == {"missing.png"}
        assert engine.calls_to("add_resource") == []

    @pytest.mark.asyncio
    async def test_data_urls_skipped(self):
        module, engine, handle = await _start()
        resolver = StaticResolver()
        resolved_urls: set[str] = set()

        rounds = await ResourceResolutionLoop(module, handle, resolver, resolved_urls).run(
            '<img src="data:image/png;base64,AAAA">', 800
        )

        assert rounds == 0
        assert resolver.calls == []
        assert resolved_urls == set()

    @pytest.mark.asyncio
    async def test_round_cap(self):
        module, engine, handle = await _start(EndlessEngine)
        resolver = StaticResolver()

        rounds = await ResourceResolutionLoop(module, handle, resolver, set()).run("<p></p>", 800)

        assert rounds == MAX_RESOLUTION_ROUNDS
        assert len(resolver.calls) == MAX_RESOLUTION_ROUNDS
        assert len(engine.calls_to("collect_resources")) == MAX_RESOLUTION_ROUNDS

    @pytest.mark.asyncio
    async def test_custom_round_cap(self):
        module, engine, handle = await _start(EndlessEngine)
        resolver = StaticResolver()

        rounds = await ResourceResolutionLoop(module, handle, resolver, set(), max_rounds=3).run("<p></p>", 800)

        assert rounds == 3
        assert len(resolver.calls) == 3

    @pytest.mark.asyncio
    async def test_failed_resolution_does_not_stop_others(self, caplog):
        module, engine, handle = await _start()
        resolver = StaticResolver({"ok.png": b"ok"}, failing={"broken.png"})

        await ResourceResolutionLoop(module, handle, resolver, set()).run(
            '<img src="broken.png"><img src="ok.png">', 800
        )

        added = [args[1] for args in engine.calls_to("add_resource")]
        assert added == ["ok.png"]
        assert "Failed to resolve resource: broken.png" in caplog.text

    @pytest.mark.asyncio
    async def test_non_bytes_result_ignored(self, caplog):
        module, engine, handle = await _start()

        async def resolver(resource):
            return "not bytes"

        await ResourceResolutionLoop(module, handle, resolver, set()).run('<img src="a.png">', 800)

        assert engine.calls_to("add_resource") == []
        assert "resolver returned str" in caplog.text

    @pytest.mark.asyncio
    async def test_registration_failure_is_fatal(self):
        module, engine, handle = await _start(fail_on={"add_resource"})
        resolver = StaticResolver({"a.png": b"a"})

        with pytest.raises(EngineError) as exc_info:
            await ResourceResolutionLoop(module, handle, resolver, set()).run('<img src="a.png">', 800)
        assert exc_info.value.phase == "add_resource"

    @pytest.mark.asyncio
    async def test_shared_resolved_urls_across_documents(self):
        module, engine, handle = await _start()
        resolver = StaticResolver({"shared.css": b"p {}"})
        resolved_urls: set[str] = set()

        for html in ('<link href="shared.css">', '<link href="shared.css"><p>two</p>'):
            await ResourceResolutionLoop(module, handle, resolver, resolved_urls).run(html, 800)

        assert resolver.calls == ["shared.css"]


class TestStripResolvedLinks:
    def test_removes_matching_links_only(self):
        html = '<link rel="stylesheet" href="a.css"><link href=\'b.css\' rel="stylesheet"><p>x</p>'
        assert strip_resolved_links(html, {"a.css"}) == "<link href='b.css' rel=\"stylesheet\"><p>x</p>"

    def test_case_insensitive_tag(self):
        html = '<LINK REL="stylesheet" HREF="a.css"><p>x</p>'
        assert strip_resolved_links(html, ["a.css"]) == "<p>x</p>"

    def test_url_is_matched_literally(self):
        html = '<link href="a.css?v=1"><link href="aXcss">'
        assert strip_resolved_links(html, ["a.css?v=1"]) == '<link href="aXcss">'

    def test_other_tags_untouched(self):
        html = '<img src="a.css"><a href="a.css">a</a>'
        assert strip_resolved_links(html, ["a.css"]) == html
