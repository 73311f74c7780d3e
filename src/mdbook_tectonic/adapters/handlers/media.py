"""Image handlers."""

from __future__ import annotations

from bs4.element import Tag

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import coerce_attribute, is_only_child, is_valid_url, latex_node


@renders("img", phase=RenderPhase.BLOCK, name="images", nestable=False)
def render_images(element: Tag, context: RenderContext) -> None:
    """Render images with ``\\includegraphics``.

    Paths were rewritten to the copied location before conversion. An image
    standing alone in its paragraph is centred with its title as caption.
    Remote images cannot be embedded and degrade to a link.
    """
    src = (coerce_attribute(element.get("src")) or "").strip()
    alt = coerce_attribute(element.get("alt")) or ""
    title = coerce_attribute(element.get("title")) or ""

    if not src:
        element.decompose()
        return

    if is_valid_url(src):
        text = context.formatter.escape(alt or src)
        element.replace_with(latex_node(context.formatter.href(text=text, url=src)))
        return

    image = context.formatter.image(path=src)
    parent = element.parent
    if parent is not None and parent.name == "p" and is_only_child(element):
        caption = context.formatter.escape(title) if title else ""
        figure = context.formatter.figure(image=image, caption=caption)
        parent.replace_with(latex_node(f"\n{figure}"))
        return
    element.replace_with(latex_node(image))


__all__ = ["render_images"]
