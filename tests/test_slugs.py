"""Tests for tenant slug resolution."""

import pytest

from praxischat.slugs import (
    SlugSource,
    explicit_slug,
    resolve_tenant_slug,
    slug_from_referer,
)


def test_explicit_slug_wins_over_referer():
    slug = resolve_tenant_slug(
        "hausarzt-muster",
        "https://widget.example.com/embed/zahnarzt-beispiel",
    )
    assert slug == "hausarzt-muster"


@pytest.mark.parametrize(
    ("referer", "expected"),
    [
        ("https://widget.example.com/embed/hausarzt-muster", "hausarzt-muster"),
        ("https://widget.example.com/demo/hausarzt-muster?x=1", "hausarzt-muster"),
        ("https://widget.example.com/embed/hausarzt-muster/chat", "hausarzt-muster"),
        ("https://widget.example.com/de/embed/praxis%20s%C3%BCd", "praxis süd"),
        ("http://localhost:3000/demo/a", "a"),
    ],
)
def test_slug_from_referer(referer, expected):
    assert resolve_tenant_slug(None, referer) == expected


@pytest.mark.parametrize(
    "referer",
    [
        None,
        "",
        "https://widget.example.com/",
        "https://widget.example.com/embed/",
        "https://widget.example.com/other/hausarzt-muster",
        "/embed/hausarzt-muster",
        "not a url",
    ],
)
def test_unresolvable_referer(referer):
    assert resolve_tenant_slug(None, referer) is None


def test_empty_explicit_slug_falls_through():
    slug = resolve_tenant_slug("", "https://widget.example.com/embed/hausarzt-muster")
    assert slug == "hausarzt-muster"


def test_custom_strategy_order():
    source_referer = "https://widget.example.com/embed/from-referer"
    slug = resolve_tenant_slug(
        "explicit",
        source_referer,
        strategies=(slug_from_referer, explicit_slug),
    )
    assert slug == "from-referer"


def test_no_strategies_resolves_nothing():
    assert resolve_tenant_slug("explicit", None, strategies=()) is None


def test_slug_from_referer_custom_prefixes():
    source = SlugSource(referer="https://example.com/widget/praxis-a")
    assert slug_from_referer(source) is None
    assert slug_from_referer(source, prefixes=("widget",)) == "praxis-a"
