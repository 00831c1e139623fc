"""
Test ViewEngine compile, cache and execute stages.
"""

import asyncio
from types import SimpleNamespace

import pytest

from viewrender import (
    Failed,
    HelperFailedFault,
    Rendered,
    TemplateCompileFault,
    TemplateExecutionFault,
    ViewNotFoundFault,
)


@pytest.mark.asyncio
async def test_cache_enabled_reads_and_compiles_once(make_engine):
    """Rendering twice with caching performs one read and one compile."""
    engine = make_engine({"index.html": "Hello {{ name }}"}, layout=False)

    first = await engine.render_view("index.html", {"name": "A"})
    second = await engine.render_view("index.html", {"name": "B"})

    assert first == Rendered("Hello A")
    assert second == Rendered("Hello B")
    assert engine.reads == 1
    assert engine.compiler.compiles == 1
    assert "index.html" in engine.cache
    assert engine.cache.hits == 1


@pytest.mark.asyncio
async def test_cache_disabled_reads_every_render(make_engine):
    engine = make_engine({"index.html": "Hello {{ name }}"}, layout=False, cache=False)

    await engine.render_view("index.html", {"name": "A"})
    await engine.render_view("index.html", {"name": "B"})

    assert engine.reads == 2
    assert engine.compiler.compiles == 2
    assert len(engine.cache) == 0


@pytest.mark.asyncio
async def test_cached_view_ignores_file_changes(make_engine, views_root):
    engine = make_engine({"index.html": "v1"}, layout=False)

    assert await engine.render_view("index.html", {}) == Rendered("v1")
    (views_root / "index.html").write_text("v2")

    assert await engine.render_view("index.html", {}) == Rendered("v1")


@pytest.mark.asyncio
async def test_uncached_view_sees_file_changes(make_engine, views_root):
    engine = make_engine({"index.html": "v1"}, layout=False, cache=False)

    assert await engine.render_view("index.html", {}) == Rendered("v1")
    (views_root / "index.html").write_text("v2")

    assert await engine.render_view("index.html", {}) == Rendered("v2")


@pytest.mark.asyncio
async def test_missing_view_is_failed_result(make_engine):
    engine = make_engine()

    result = await engine.get_compiled("nope.html")

    assert isinstance(result, Failed)
    assert isinstance(result.fault, ViewNotFoundFault)
    assert result.fault.code == "VIEW_NOT_FOUND"
    assert result.fault.metadata["view"] == "nope.html"
    assert isinstance(result.fault.__cause__, OSError)


@pytest.mark.asyncio
async def test_nul_in_view_name_is_failed_result(make_engine):
    engine = make_engine()

    result = await engine.get_compiled("a\0.html")

    assert isinstance(result, Failed)
    assert isinstance(result.fault, ViewNotFoundFault)
    assert isinstance(result.fault.__cause__, ValueError)


@pytest.mark.asyncio
async def test_undecodable_view_is_failed_result(make_engine, views_root):
    engine = make_engine()
    (views_root / "latin.html").write_bytes(b"caf\xe9")

    result = await engine.get_compiled("latin.html")

    assert isinstance(result, Failed)
    assert isinstance(result.fault, ViewNotFoundFault)


@pytest.mark.asyncio
async def test_syntax_error_is_failed_result(make_engine):
    engine = make_engine({"broken.html": "{% if %}"})

    result = await engine.get_compiled("broken.html")

    assert isinstance(result, Failed)
    assert isinstance(result.fault, TemplateCompileFault)
    assert "broken.html" not in engine.cache


@pytest.mark.asyncio
async def test_partials_are_expanded_before_compile(make_engine):
    engine = make_engine({
        "page.html": "{{ partial('header.html') }}<p>{{ text }}</p>",
        "inline.html": "<h1>{{ title }}</h1><p>{{ text }}</p>",
        "header.html": "<h1>{{ title }}</h1>",
    })
    context = {"title": "T", "text": "body"}

    expanded = await engine.render_view("page.html", context)
    inlined = await engine.render_view("inline.html", context)

    assert expanded == inlined == Rendered("<h1>T</h1><p>body</p>")


@pytest.mark.asyncio
async def test_self_including_view_renders_empty_segment(make_engine):
    engine = make_engine({"a.html": "start <{{ partial('a.html') }}> end"})

    result = await engine.render_view("a.html", {})

    assert result == Rendered("start <> end")


@pytest.mark.asyncio
async def test_undefined_variable_is_execution_fault(make_engine):
    engine = make_engine({"index.html": "{{ missing }}"})

    result = await engine.render_view("index.html", {})

    assert isinstance(result, Failed)
    assert isinstance(result.fault, TemplateExecutionFault)
    assert "missing" in result.fault.message


@pytest.mark.asyncio
async def test_lenient_undefined(make_engine):
    engine = make_engine({"index.html": "[{{ missing }}]"}, strict_undefined=False)

    assert await engine.render_view("index.html", {}) == Rendered("[]")


@pytest.mark.asyncio
async def test_dynamic_partial_fails_at_execution(make_engine):
    engine = make_engine({"index.html": "{{ partial(name) }}"})

    result = await engine.render_view("index.html", {"name": "x.html"})

    assert isinstance(result, Failed)
    assert isinstance(result.fault, TemplateExecutionFault)


@pytest.mark.asyncio
async def test_execute_passes_scope(make_engine):
    engine = make_engine({"index.html": "{{ scope.user }}:{{ title }}"})
    compiled = (await engine.get_compiled("index.html")).output

    result = engine.execute(compiled, {"scope": SimpleNamespace(user="ann"), "title": "T"})

    assert result == Rendered("ann:T")


@pytest.mark.asyncio
async def test_autoescape(make_engine):
    engine = make_engine({"index.html": "{{ html }}"})

    result = await engine.render_view("index.html", {"html": "<b>"})

    assert result == Rendered("&lt;b&gt;")


@pytest.mark.asyncio
async def test_custom_delimiters(make_engine):
    engine = make_engine(
        {"index.html": "<p>[[ partial('name.html') ]]</p>", "name.html": "[[ name ]]"},
        variable_start_string="[[",
        variable_end_string="]]",
    )

    assert await engine.render_view("index.html", {"name": "N"}) == Rendered("<p>N</p>")


@pytest.mark.asyncio
async def test_concurrent_first_compiles(make_engine):
    engine = make_engine({"index.html": "{{ n }}"})

    results = await asyncio.gather(
        *(engine.render_view("index.html", {"n": i}) for i in range(5))
    )

    assert [r.output for r in results] == ["0", "1", "2", "3", "4"]
    assert len(engine.cache) == 1


@pytest.mark.asyncio
async def test_render_to_string_raises_fault(make_engine):
    engine = make_engine({"index.html": "{{ missing }}"}, layout=False)

    with pytest.raises(TemplateExecutionFault):
        await engine.render_to_string("index.html")


@pytest.mark.asyncio
async def test_render_to_string_raises_helper_fault(make_engine):
    def boom(request, response):
        raise KeyError("user")

    engine = make_engine({"index.html": "x"}, layout=False, helpers={"user": boom})

    with pytest.raises(HelperFailedFault) as info:
        await engine.render_to_string("index.html")
    assert isinstance(info.value.__cause__, KeyError)


def test_list_views(make_engine):
    engine = make_engine({"index.html": "", "nav/menu.html": "", "layout.html": ""})

    assert engine.list_views() == ["index.html", "layout.html", "nav/menu.html"]
