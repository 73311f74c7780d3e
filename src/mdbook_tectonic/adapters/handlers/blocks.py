"""Block-level handlers: lists, block quotes and tables."""

from __future__ import annotations

import re

from bs4.element import Tag

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.exceptions import InvalidNodeError
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import coerce_attribute, latex_node


CHECKED_MARKER = r"[$\boxtimes$]"
UNCHECKED_MARKER = r"[$\square$]"
ENUMERATE_COUNTERS = ("enumi", "enumii", "enumiii", "enumiv")

_ALIGN_PATTERN = re.compile(r"text-align\s*:\s*(left|center|right)")
_COLUMN_TYPES = {"left": "L", "center": "C", "right": "R"}
_TABLE_WIDTH = 0.9


def _list_items(element: Tag) -> list[dict[str, str]]:
    items: list[dict[str, str]] = []
    for item in element.find_all("li", recursive=False):
        marker = ""
        checkbox = item.find("input", attrs={"type": "checkbox"})
        if checkbox is not None:
            marker = CHECKED_MARKER if checkbox.has_attr("checked") else UNCHECKED_MARKER
            checkbox.decompose()
        items.append({"marker": marker, "text": item.get_text().strip()})
    return items


@renders("ul", phase=RenderPhase.POST, name="unordered_lists", after_children=True)
def render_unordered_lists(element: Tag, context: RenderContext) -> None:
    """Render bullet lists, with checkboxes for task lists."""
    latex = context.formatter.itemize(items=_list_items(element))
    element.replace_with(latex_node(f"\n{latex}\n"))


@renders("ol", phase=RenderPhase.POST, name="ordered_lists", after_children=True)
def render_ordered_lists(element: Tag, context: RenderContext) -> None:
    """Render numbered lists, honouring the ``start`` attribute."""
    start_value = coerce_attribute(element.get("start")) or "1"
    try:
        start = int(start_value)
    except ValueError as exc:
        raise InvalidNodeError(f"Invalid ordered list start '{start_value}'") from exc

    depth = len(element.find_parents("ol"))
    counter = ENUMERATE_COUNTERS[min(depth, len(ENUMERATE_COUNTERS) - 1)]
    latex = context.formatter.enumerate(items=_list_items(element), start=start, counter=counter)
    element.replace_with(latex_node(f"\n{latex}\n"))


@renders("blockquote", phase=RenderPhase.POST, name="block_quotes", after_children=True)
def render_block_quotes(element: Tag, context: RenderContext) -> None:
    latex = context.formatter.quote(text=element.get_text().strip())
    element.replace_with(latex_node(f"\n{latex}\n"))


def _cell_alignment(cell: Tag) -> str:
    style = coerce_attribute(cell.get("style")) or ""
    match = _ALIGN_PATTERN.search(style)
    if match:
        return match.group(1)
    return coerce_attribute(cell.get("align")) or "left"


@renders("table", phase=RenderPhase.POST, name="tables", after_children=True)
def render_tables(element: Tag, context: RenderContext) -> None:
    """Render tables as ``longtable`` with proportional paragraph columns."""
    header_cells: list[Tag] = []
    head = element.find("thead")
    if isinstance(head, Tag):
        row = head.find("tr")
        if isinstance(row, Tag):
            header_cells = row.find_all(["th", "td"], recursive=False)

    body_rows: list[list[Tag]] = []
    for row in element.find_all("tr"):
        if row.find_parent("thead") is not None:
            continue
        body_rows.append(row.find_all(["th", "td"], recursive=False))

    reference = header_cells or (body_rows[0] if body_rows else [])
    if not reference:
        element.decompose()
        return

    width = round(_TABLE_WIDTH / len(reference), 3)
    columns = "".join(
        f"{_COLUMN_TYPES.get(_cell_alignment(cell), 'L')}{{{width}\\linewidth}}"
        for cell in reference
    )

    def _row(cells: list[Tag]) -> str:
        values = [cell.get_text().strip() for cell in cells]
        values.extend([""] * (len(reference) - len(values)))
        return " & ".join(values[: len(reference)])

    latex = context.formatter.table(
        columns=columns,
        header=_row(header_cells) if header_cells else "",
        rows=[_row(cells) for cells in body_rows],
    )
    element.replace_with(latex_node(f"\n{latex}\n"))


__all__ = [
    "CHECKED_MARKER",
    "UNCHECKED_MARKER",
    "render_block_quotes",
    "render_ordered_lists",
    "render_tables",
    "render_unordered_lists",
]
