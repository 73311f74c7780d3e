"""Baseline handlers: tree cleanup, text escaping, headings and paragraphs."""

from __future__ import annotations

from bs4.element import NavigableString, Tag

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import coerce_attribute, has_ancestor, latex_node


UNWANTED_NODES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("html", (), "unwrap"),
    ("head", (), "decompose"),
    ("body", (), "unwrap"),
    ("script", (), "decompose"),
    ("style", (), "decompose"),
    ("a", ("footnote-backref",), "extract"),
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


@renders(phase=RenderPhase.PRE, priority=-10, auto_mark=False, name="discard_unwanted")
def discard_unwanted(root: Tag, _context: RenderContext) -> None:
    """Discard or unwrap nodes that must not reach later phases."""
    for tag_name, classes, mode in UNWANTED_NODES:
        candidates = (
            root.find_all(tag_name, class_=list(classes)) if classes else root.find_all(tag_name)
        )
        for node in candidates:
            if mode == "unwrap":
                node.unwrap()
            elif mode == "extract":
                node.extract()
            else:
                node.decompose()


@renders(phase=RenderPhase.PRE, priority=-5, auto_mark=False, name="label_headings")
def label_headings(root: Tag, context: RenderContext) -> None:
    """Give every heading a unique label derived from its raw text."""
    for heading in root.find_all(list(HEADING_TAGS)):
        ref = coerce_attribute(heading.get("id"))
        if ref and ref not in context.state.labels:
            context.state.labels.add(ref)
        else:
            heading["id"] = context.state.unique_label(heading.get_text(strip=True))


@renders(phase=RenderPhase.PRE, name="escape_plain_text", auto_mark=False)
def escape_plain_text(root: Tag, context: RenderContext) -> None:
    """Escape LaTeX characters on text nodes outside code."""
    for node in list(root.find_all(string=True)):
        if type(node) is not NavigableString or getattr(node, "processed", False):
            continue
        if has_ancestor(node, "code", "pre"):
            continue
        text = str(node)
        escaped = context.formatter.escape(text)
        if escaped != text:
            node.replace_with(latex_node(escaped))


@renders("hr", phase=RenderPhase.BLOCK, name="render_horizontal_rule")
def render_horizontal_rule(element: Tag, context: RenderContext) -> None:
    element.replace_with(latex_node("\n" + context.formatter.horizontalrule()))


@renders("br", phase=RenderPhase.INLINE, name="line_breaks")
def replace_line_breaks(element: Tag, _context: RenderContext) -> None:
    """Convert ``<br>`` tags into explicit LaTeX line breaks."""
    element.replace_with(latex_node("\\\\"))


@renders(*HEADING_TAGS, phase=RenderPhase.POST, name="render_headings")
def render_headings(element: Tag, context: RenderContext) -> None:
    """Convert HTML headings to sectioning commands with a unique label."""
    text = element.get_text(strip=False).strip()
    plain_text = element.get_text(strip=True)
    level = int(element.name[1:])

    ref = coerce_attribute(element.get("id")) or context.state.unique_label(plain_text)

    latex = context.formatter.heading(text=text, level=level, ref=ref)
    element.replace_with(latex_node(f"\n{latex}\n\n"))
    context.state.add_heading(level=level, text=plain_text, ref=ref)


@renders("p", phase=RenderPhase.POST, name="render_paragraphs")
def render_paragraphs(element: Tag, _context: RenderContext) -> None:
    """Separate paragraphs with a blank line."""
    text = element.get_text(strip=False).strip()
    if not text:
        element.decompose()
        return
    element.replace_with(latex_node(f"{text}\n\n"))


__all__ = [
    "discard_unwanted",
    "escape_plain_text",
    "label_headings",
    "render_headings",
    "render_horizontal_rule",
    "render_paragraphs",
    "replace_line_breaks",
]
