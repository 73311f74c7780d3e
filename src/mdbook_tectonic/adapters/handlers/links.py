"""Hyperlink handlers."""

from __future__ import annotations

from urllib.parse import unquote, urlparse

from bs4.element import Tag
from slugify import slugify

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import coerce_attribute, latex_node


def internal_reference(href: str) -> str | None:
    """Return the label targeted by an in-book link, if it is one.

    ``#anchor`` and ``chapter.md#anchor`` point at heading labels. Links to a
    chapter without a fragment have no label and return ``None``.
    """
    parsed = urlparse(href)
    if parsed.scheme or parsed.netloc:
        return None
    if not parsed.fragment:
        return None
    if parsed.path and not parsed.path.endswith((".md", ".html")):
        return None
    return slugify(unquote(parsed.fragment)) or None


def is_chapter_link(href: str) -> bool:
    parsed = urlparse(href)
    return not parsed.scheme and not parsed.netloc and parsed.path.endswith((".md", ".html"))


@renders("a", phase=RenderPhase.INLINE, name="links", after_children=True)
def render_links(element: Tag, context: RenderContext) -> None:
    """Render anchors as ``\\href``, ``\\url`` or ``\\hyperref``."""
    href = (coerce_attribute(element.get("href")) or "").strip()
    text = element.get_text()

    if not href:
        element.replace_with(latex_node(text))
        return

    reference = internal_reference(href)
    if reference is not None:
        element.replace_with(latex_node(context.formatter.ref(text=text, ref=reference)))
        return

    if is_chapter_link(href):
        element.replace_with(latex_node(text))
        return

    if element.get_text(strip=True) in {href, context.formatter.escape(href)}:
        element.replace_with(latex_node(context.formatter.url(url=href)))
        return

    element.replace_with(latex_node(context.formatter.href(text=text, url=href)))


__all__ = ["internal_reference", "is_chapter_link", "render_links"]
