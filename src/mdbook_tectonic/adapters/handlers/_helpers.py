"""Internal helpers shared across handler modules."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar, cast
from urllib.parse import urlparse

from bs4.element import NavigableString, PageElement, Tag


NodeT = TypeVar("NodeT", bound=PageElement)


def mark_processed(node: NodeT) -> NodeT:
    """Flag a node so text escaping leaves it alone."""
    cast(Any, node).processed = True
    return node


def latex_node(latex: str) -> NavigableString:
    """Wrap generated LaTeX in a string node that is never escaped again."""
    return mark_processed(NavigableString(latex))


def coerce_attribute(value: Any) -> str | None:
    """Normalise a BeautifulSoup attribute value to a string when possible."""
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable):
        for item in value:
            if isinstance(item, str):
                return item
    return None


def gather_classes(value: Any) -> list[str]:
    """Return the classes of a BeautifulSoup ``class`` attribute."""
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return [item for item in value if isinstance(item, str)]
    return []


def has_ancestor(node: PageElement, *names: str) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.name in names:
            return True
        parent = parent.parent
    return False


def is_valid_url(url: str) -> bool:
    """Check whether a URL string has a scheme and a network location."""
    try:
        result = urlparse(url)
    except ValueError:
        return False
    return bool(result.scheme and result.netloc)


def is_only_child(element: Tag) -> bool:
    """Return True when ``element`` is the sole non-blank content of its parent."""
    parent = element.parent
    if parent is None:
        return False
    for sibling in parent.contents:
        if sibling is element:
            continue
        if isinstance(sibling, NavigableString) and not sibling.strip():
            continue
        return False
    return True
