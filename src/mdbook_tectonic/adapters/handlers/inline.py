"""Inline formatting handlers."""

from __future__ import annotations

import copy

from bs4.element import NavigableString, Tag

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import coerce_attribute, gather_classes, latex_node


FOOTNOTE_CLASS = "footnote-inline"


@renders("strong", "b", phase=RenderPhase.INLINE, name="inline_strong", after_children=True)
def render_inline_strong(element: Tag, context: RenderContext) -> None:
    element.replace_with(latex_node(context.formatter.strong(text=element.get_text())))


@renders("em", "i", phase=RenderPhase.INLINE, name="inline_emphasis", after_children=True)
def render_inline_emphasis(element: Tag, context: RenderContext) -> None:
    element.replace_with(latex_node(context.formatter.emphasis(text=element.get_text())))


@renders("del", "s", phase=RenderPhase.INLINE, name="inline_deletion", after_children=True)
def render_inline_deletion(element: Tag, context: RenderContext) -> None:
    """Render ``~~text~~`` as struck-out text."""
    element.replace_with(latex_node(context.formatter.strikethrough(text=element.get_text())))


@renders(phase=RenderPhase.BLOCK, name="attach_footnotes", auto_mark=False)
def attach_footnotes(root: Tag, context: RenderContext) -> None:
    """Move footnote definitions next to their references.

    Python-Markdown collects definitions in a trailing ``div.footnote``; LaTeX
    wants the text at the reference point, so each ``sup`` reference becomes a
    ``span`` holding the definition content.
    """
    definitions: dict[str, Tag] = {}
    for container in root.find_all("div", class_="footnote"):
        for item in container.find_all("li"):
            identifier = coerce_attribute(item.get("id"))
            if identifier:
                definitions[identifier] = item
        container.extract()

    for reference in list(root.find_all("a", class_="footnote-ref")):
        target = (coerce_attribute(reference.get("href")) or "").lstrip("#")
        definition = definitions.get(target)
        marker = reference
        if reference.parent is not None and reference.parent.name == "sup":
            marker = reference.parent
        if definition is None:
            marker.decompose()
            continue

        holder = context.document.new_tag("span", attrs={"class": FOOTNOTE_CLASS})
        paragraphs = definition.find_all("p", recursive=False) or [definition]
        for index, paragraph in enumerate(paragraphs):
            if index:
                holder.append(NavigableString("\n\n"))
            for child in list(paragraph.contents):
                holder.append(copy.copy(child))
        marker.replace_with(holder)


@renders(
    "span",
    phase=RenderPhase.INLINE,
    name="inline_footnotes",
    after_children=True,
    auto_mark=False,
)
def render_inline_footnotes(element: Tag, context: RenderContext) -> None:
    if FOOTNOTE_CLASS not in gather_classes(element.get("class")):
        return
    text = element.get_text().strip()
    element.replace_with(latex_node(context.formatter.footnote(text=text)))
    context.state.next_counter("footnote")


__all__ = [
    "FOOTNOTE_CLASS",
    "attach_footnotes",
    "render_inline_deletion",
    "render_inline_emphasis",
    "render_inline_footnotes",
    "render_inline_strong",
]
