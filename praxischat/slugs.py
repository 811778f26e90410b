"""Tenant slug resolution.

Strategies are tried in order; the first one that yields a slug wins:

=========  ==========================================================
Order      Strategy
=========  ==========================================================
1          Explicit ``slug`` supplied with the request
2          Path segment after ``/embed/`` or ``/demo/`` in the Referer
(none)     Resolution fails; the caller answers with a technical error
=========  ==========================================================
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

EMBED_PATH_PREFIXES: tuple[str, ...] = ("embed", "demo")


@dataclass(frozen=True)
class SlugSource:
    """Request data slug strategies may inspect."""

    explicit: str | None = None
    referer: str | None = None


SlugStrategy = Callable[[SlugSource], str | None]


def explicit_slug(source: SlugSource) -> str | None:
    """Use the slug sent with the request."""  # noqa: DOC201
    return source.explicit or None


def slug_from_referer(
    source: SlugSource,
    prefixes: Sequence[str] = EMBED_PATH_PREFIXES,
) -> str | None:
    """Infer the slug from the embedding page's URL.

    Returns:
        The URL-decoded path segment following a known prefix, or None.
    """
    if not source.referer:
        return None

    parts = urlsplit(source.referer)
    if not parts.scheme or not parts.netloc:
        return None

    for prefix in prefixes:
        match = re.search(rf"/{re.escape(prefix)}/([^/]+)", parts.path)
        if match:
            return unquote(match.group(1))
    return None


DEFAULT_STRATEGIES: tuple[SlugStrategy, ...] = (explicit_slug, slug_from_referer)


def resolve_tenant_slug(
    explicit: str | None = None,
    referer: str | None = None,
    strategies: Sequence[SlugStrategy] = DEFAULT_STRATEGIES,
) -> str | None:
    """Run the strategies in order and return the first slug found."""  # noqa: DOC201
    source = SlugSource(explicit=explicit, referer=referer)
    for strategy in strategies:
        slug = strategy(source)
        if slug:
            return slug
    return None
