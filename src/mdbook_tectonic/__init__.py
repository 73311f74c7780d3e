"""Primary public API for mdbook-tectonic."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from mdbook_tectonic.core.book import BookContext, Chapter, load_book_context
from mdbook_tectonic.core.config import LatexConfig, StyleConfig
from mdbook_tectonic.core.context import AssetRegistry, DocumentState, RenderContext
from mdbook_tectonic.core.exceptions import (
    AssetMissingError,
    BookContextError,
    CompilationError,
    ConfigurationError,
    InvalidNodeError,
    LatexRenderingError,
    SpliceError,
    TectonicNotFoundError,
    TemplateError,
)
from mdbook_tectonic.core.glyphs import GlyphSubstitution, GlyphTable
from mdbook_tectonic.core.languages import LanguageDefinition, LanguageTable
from mdbook_tectonic.core.pipeline import RenderResult, render_book
from mdbook_tectonic.core.rules import RenderPhase, renders
from mdbook_tectonic.core.templates import (
    INSERTION_MARKER,
    TemplateDocument,
    load_template,
    splice,
)


try:
    __version__ = _pkg_version("mdbook-tectonic")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "INSERTION_MARKER",
    "AssetMissingError",
    "AssetRegistry",
    "BookContext",
    "BookContextError",
    "Chapter",
    "CompilationError",
    "ConfigurationError",
    "DocumentState",
    "GlyphSubstitution",
    "GlyphTable",
    "InvalidNodeError",
    "LanguageDefinition",
    "LanguageTable",
    "LatexConfig",
    "LatexRenderingError",
    "RenderContext",
    "RenderPhase",
    "RenderResult",
    "SpliceError",
    "StyleConfig",
    "TectonicNotFoundError",
    "TemplateDocument",
    "TemplateError",
    "__version__",
    "load_book_context",
    "load_template",
    "render_book",
    "renders",
    "splice",
]
