"""Models for the render context mdbook hands to output backends.

mdbook serialises a ``RenderContext`` as JSON on the backend's stdin. Only the
fields the backend reads are modelled; unknown keys are ignored so newer
mdbook releases keep working.
"""

from __future__ import annotations

from collections.abc import Iterator
import json
import logging
from pathlib import Path
import re
from typing import IO, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import LatexConfig
from .exceptions import BookContextError


logger = logging.getLogger(__name__)

SUPPORTED_MDBOOK_VERSION = "0.4"

_VERSION_PATTERN = re.compile(r"^\s*v?(\d+)\.(\d+)")


class Separator(BaseModel):
    """Horizontal separator between summary entries."""

    kind: Literal["separator"] = "separator"


class PartTitle(BaseModel):
    """Title introducing a group of chapters in the summary."""

    kind: Literal["part"] = "part"
    title: str


class Chapter(BaseModel):
    """A chapter and, recursively, its sub-chapters."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["chapter"] = "chapter"
    name: str
    content: str = ""
    number: list[int] | None = None
    sub_items: list[BookItem] = Field(default_factory=list)
    path: Path | None = None
    source_path: Path | None = None
    parent_names: list[str] = Field(default_factory=list)

    @field_validator("sub_items", mode="before")
    @classmethod
    def _decode_sub_items(cls, value: Any) -> Any:
        return _decode_items(value)

    @property
    def is_draft(self) -> bool:
        """Draft chapters are listed in the summary without a source file."""
        return self.path is None

    @property
    def directory(self) -> Path:
        """Directory of the chapter file relative to the book sources."""
        if self.path is None:
            return Path()
        return self.path.parent


BookItem = Union[Chapter, Separator, PartTitle]


def _decode_item(raw: Any) -> Any:
    if isinstance(raw, BaseModel):
        return raw
    if raw == "Separator":
        return Separator()
    if isinstance(raw, dict):
        if "Chapter" in raw:
            return Chapter.model_validate(raw["Chapter"])
        if "PartTitle" in raw:
            return PartTitle(title=raw["PartTitle"])
        if "kind" in raw:
            return raw
    raise ValueError(f"Unsupported book item {raw!r}")


def _decode_items(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [_decode_item(item) for item in value]
    return value


Chapter.model_rebuild()


class Book(BaseModel):
    """Ordered summary entries of the book."""

    model_config = ConfigDict(extra="ignore")

    sections: list[BookItem] = Field(default_factory=list)

    @field_validator("sections", mode="before")
    @classmethod
    def _decode_sections(cls, value: Any) -> Any:
        return _decode_items(value)

    def iter(self) -> Iterator[BookItem]:
        """Yield every item depth-first, in reading order."""

        def _walk(items: list[BookItem]) -> Iterator[BookItem]:
            for item in items:
                yield item
                if isinstance(item, Chapter):
                    yield from _walk(item.sub_items)

        return _walk(self.sections)

    def iter_chapters(self) -> Iterator[Chapter]:
        """Yield chapters depth-first, in reading order."""
        for item in self.iter():
            if isinstance(item, Chapter):
                yield item


class BookMetadata(BaseModel):
    """The ``[book]`` table of ``book.toml``."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    description: str | None = None
    language: str | None = None
    src: Path = Path("src")


class BookConfig(BaseModel):
    """Subset of ``book.toml`` relevant to the backend."""

    model_config = ConfigDict(extra="ignore")

    book: BookMetadata = Field(default_factory=BookMetadata)
    output: dict[str, Any] = Field(default_factory=dict)


class BookContext(BaseModel):
    """Render context received from mdbook."""

    model_config = ConfigDict(extra="ignore")

    version: str = SUPPORTED_MDBOOK_VERSION
    root: Path = Path(".")
    book: Book = Field(default_factory=Book)
    config: BookConfig = Field(default_factory=BookConfig)
    destination: Path = Path("book")

    @property
    def source_dir(self) -> Path:
        """Directory holding the chapter sources."""
        return self.root / self.config.book.src

    @property
    def latex_config(self) -> LatexConfig:
        return LatexConfig.from_output_tables(self.config.output)

    def is_version_supported(self) -> bool:
        """Return True when mdbook's major/minor version matches the supported one."""
        return versions_compatible(SUPPORTED_MDBOOK_VERSION, self.version)


def versions_compatible(expected: str, running: str) -> bool:
    """Compare versions the way ``^x.y`` requirements do for ``0.x`` releases."""
    wanted = _VERSION_PATTERN.match(expected)
    actual = _VERSION_PATTERN.match(running)
    if wanted is None or actual is None:
        return False
    if wanted.group(1) != actual.group(1):
        return False
    if wanted.group(1) == "0":
        return wanted.group(2) == actual.group(2)
    return int(actual.group(2)) >= int(wanted.group(2))


def load_book_context(payload: str | bytes | IO[str] | dict[str, Any]) -> BookContext:
    """Decode a render context from JSON text, a stream or a mapping."""
    try:
        if isinstance(payload, dict):
            data = payload
        elif isinstance(payload, (str, bytes)):
            data = json.loads(payload)
        else:
            data = json.load(payload)
    except json.JSONDecodeError as exc:
        raise BookContextError(f"Failed to parse the render context as JSON: {exc}") from exc

    try:
        return BookContext.model_validate(data)
    except ValidationError as exc:
        raise BookContextError(f"Invalid mdbook render context: {exc}") from exc


__all__ = [
    "SUPPORTED_MDBOOK_VERSION",
    "Book",
    "BookConfig",
    "BookContext",
    "BookItem",
    "BookMetadata",
    "Chapter",
    "PartTitle",
    "Separator",
    "load_book_context",
    "versions_compatible",
]
