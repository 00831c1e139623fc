"""
Test static partial expansion.
"""

import logging

import pytest

from viewrender import PartialResolver, build_partial_pattern, normalize_view

from tests.conftest import write_views


@pytest.fixture
def resolver(views_root):
    write_views(views_root, {
        "header.html": "<h1>{{ title }}</h1>",
        "nav/menu.html": "<nav>{{ partial('nav/item.html') }}</nav>",
        "nav/item.html": "<a>item</a>",
        "self.html": "S[{{ partial('self.html') }}]",
        "a.html": "a({{ partial('b.html') }})",
        "b.html": "b({{ partial('a.html') }})",
    })
    return PartialResolver(views_root)


def test_expands_single_quoted_partial(resolver):
    result = resolver.resolve("before {{ partial('header.html') }} after")

    assert result == "before <h1>{{ title }}</h1> after"


def test_expands_double_quoted_partial_with_whitespace_control(resolver):
    result = resolver.resolve('x {{- partial("header.html") -}} y')

    assert result == "x <h1>{{ title }}</h1> y"


def test_expands_nested_partials(resolver):
    result = resolver.resolve("{{ partial('nav/menu.html') }}")

    assert result == "<nav><a>item</a></nav>"


def test_two_directives_on_one_line(resolver):
    result = resolver.resolve("{{ partial('nav/item.html') }}|{{ partial('nav/item.html') }}")

    assert result == "<a>item</a>|<a>item</a>"


def test_self_reference_is_empty(resolver):
    result = resolver.resolve("S[{{ partial('self.html') }}]", current="self.html")

    assert result == "S[]"


def test_self_reference_inside_included_file(resolver):
    result = resolver.resolve("{{ partial('self.html') }}")

    assert result == "S[]"


def test_ancestor_cycle_is_broken(resolver):
    result = resolver.resolve("a({{ partial('b.html') }})", current="a.html")

    assert result == "a(b())"


def test_self_reference_matches_normalized_name(resolver):
    result = resolver.resolve("S[{{ partial('./self.html') }}]", current="self.html")

    assert result == "S[]"


def test_empty_literal_is_removed(resolver):
    assert resolver.resolve("x{{ partial('') }}y") == "xy"


def test_dynamic_partial_passes_through(resolver):
    source = "{{ partial(name) }}"

    assert resolver.resolve(source) == source


def test_missing_partial_logs_warning(resolver, caplog):
    with caplog.at_level(logging.WARNING, logger="viewrender.partials"):
        result = resolver.resolve("x[{{ partial('missing.html') }}]y")

    assert result == "x[]y"
    assert any("PARTIAL_UNREADABLE" in r.getMessage() for r in caplog.records)
    assert any("missing.html" in r.getMessage() for r in caplog.records)


def test_nul_in_partial_name_logs_warning(resolver, caplog):
    with caplog.at_level(logging.WARNING, logger="viewrender.partials"):
        result = resolver.resolve("x[{{ partial('x\0y.html') }}]y")

    assert result == "x[]y"
    assert any("PARTIAL_UNREADABLE" in r.getMessage() for r in caplog.records)


def test_custom_delimiters(views_root):
    write_views(views_root, {"p.html": "P"})
    resolver = PartialResolver(views_root, variable_start_string="[[", variable_end_string="]]")

    assert resolver.resolve("[[ partial('p.html') ]] {{ partial('p.html') }}") == "P {{ partial('p.html') }}"


def test_pattern_requires_literal_argument():
    pattern = build_partial_pattern()

    assert pattern.search("{{ partial('a.html') }}").group("view") == "a.html"
    assert pattern.search("{{ partial(view_name) }}") is None
    assert pattern.search("{{ partial('a.html\") }}") is None


def test_normalize_view():
    assert normalize_view("./a.html") == "a.html"
    assert normalize_view("nav/../a.html") == "a.html"
    assert normalize_view("nav\\menu.html") == "nav/menu.html"
