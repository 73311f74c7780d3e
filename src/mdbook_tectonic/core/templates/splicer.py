"""Insertion of generated content and metadata into a template."""

from __future__ import annotations

from collections.abc import Sequence
import re

from ..exceptions import SpliceError


INSERTION_MARKER = "mdbook-tectonic begin"
UNKNOWN_TITLE = "<Unknown Title>"
AUTHOR_SEPARATOR = r" \and "

_COMMENT_START = re.compile(r"(?<!\\)(?:\\\\)*%")


def count_markers(source: str) -> int:
    """Return how many insertion markers the template contains."""
    return source.count(INSERTION_MARKER)


def find_marker(source: str) -> int:
    """Return the offset right after the single insertion marker."""
    occurrences = count_markers(source)
    if occurrences == 0:
        raise SpliceError(f"Template has no '{INSERTION_MARKER}' insertion marker")
    if occurrences > 1:
        raise SpliceError(
            f"Template has {occurrences} '{INSERTION_MARKER}' insertion markers, expected one"
        )
    return source.index(INSERTION_MARKER) + len(INSERTION_MARKER)


def splice(template: str, content: str) -> str:
    """Insert ``content`` on the line following the insertion marker.

    The inserted text is never scanned for further markers.
    """
    position = find_marker(template)
    line_end = template.find("\n", position)
    if line_end == -1:
        head, tail = template + "\n", ""
    else:
        head, tail = template[: line_end + 1], template[line_end + 1 :]
    payload = content if content.endswith("\n") or not content else content + "\n"
    return head + payload + tail


def substitute_metadata(
    template: str,
    *,
    title: str,
    authors: Sequence[str] = (),
    date: str = "",
) -> str:
    """Fill the empty ``\\title{}``, ``\\author{}`` and ``\\date{}`` placeholders.

    Values must already be valid LaTeX.
    """
    result = _fill(template, "title", title)
    result = _fill(result, "author", AUTHOR_SEPARATOR.join(authors))
    return _fill(result, "date", date)


def _fill(source: str, macro: str, value: str) -> str:
    """Fill the first ``\\macro{}`` that is not inside a TeX comment."""
    placeholder = f"\\{macro}{{}}"
    start = source.find(placeholder)
    while start != -1:
        line_start = source.rfind("\n", 0, start) + 1
        if _COMMENT_START.search(source, line_start, start) is None:
            end = start + len(placeholder)
            return f"{source[:start]}\\{macro}{{{value}}}{source[end:]}"
        start = source.find(placeholder, start + 1)
    return source


__all__ = [
    "AUTHOR_SEPARATOR",
    "INSERTION_MARKER",
    "UNKNOWN_TITLE",
    "count_markers",
    "find_marker",
    "splice",
    "substitute_metadata",
]
