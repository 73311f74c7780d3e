"""Template loading, validation and splicing."""

from __future__ import annotations

from .loader import (
    DEFAULT_TEMPLATE_NAME,
    TEMPLATE_DIR,
    TemplateDocument,
    listings_keys,
    load_template,
    load_template_source,
    render_default_template,
)
from .parser import ParsedTemplate, parse_template
from .splicer import (
    AUTHOR_SEPARATOR,
    INSERTION_MARKER,
    UNKNOWN_TITLE,
    count_markers,
    find_marker,
    splice,
    substitute_metadata,
)


__all__ = [
    "AUTHOR_SEPARATOR",
    "DEFAULT_TEMPLATE_NAME",
    "INSERTION_MARKER",
    "TEMPLATE_DIR",
    "UNKNOWN_TITLE",
    "ParsedTemplate",
    "TemplateDocument",
    "count_markers",
    "find_marker",
    "listings_keys",
    "load_template",
    "load_template_source",
    "parse_template",
    "render_default_template",
    "splice",
    "substitute_metadata",
]
