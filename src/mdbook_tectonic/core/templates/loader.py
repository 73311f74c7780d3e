"""Loading of the bundled and user-provided book templates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from functools import lru_cache
import logging
from pathlib import Path

from jinja2 import TemplateError as JinjaTemplateError

from ..config import StyleConfig
from ..exceptions import TemplateError
from ..glyphs import DEFAULT_GLYPHS, GlyphSubstitution, GlyphTable
from ..languages import DEFAULT_LANGUAGES, LanguageDefinition, LanguageTable
from .environment import latex_environment
from .parser import parse_template
from .splicer import count_markers, find_marker, splice, substitute_metadata


logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent
DEFAULT_TEMPLATE_NAME = "book.tex"

_LISTINGS_ESCAPES = {"#": r"\#", "%": r"\%", "{": r"\{", "}": r"\}", "\\": r"\\"}


def listings_literal(value: str) -> str:
    """Escape a delimiter or keyword for use inside a ``listings`` key value."""
    return "".join(_LISTINGS_ESCAPES.get(char, char) for char in value)


def listings_keys(language: LanguageDefinition) -> str:
    """Render the key/value list of a ``\\lstdefinelanguage`` declaration."""
    keys: list[str] = []
    if language.keywords:
        words = ",".join(listings_literal(word) for word in language.keywords)
        keys.append(f"keywords={{{words}}}")
    if language.secondary_keywords:
        words = ",".join(listings_literal(word) for word in language.secondary_keywords)
        keys.append(f"ndkeywords={{{words}}}")
    keys.append(f"sensitive={'true' if language.case_sensitive else 'false'}")
    if language.line_comment:
        keys.append(f"morecomment=[l]{{{listings_literal(language.line_comment)}}}")
    if language.block_comment:
        start, end = (listings_literal(part) for part in language.block_comment)
        keys.append(f"morecomment=[s]{{{start}}}{{{end}}}")
    for delimiter in language.string_delimiters:
        keys.append(f"morestring=[b]{listings_literal(delimiter)}")
    return ",\n  ".join(keys)


def render_default_template(
    style: StyleConfig | None = None,
    languages: Iterable[LanguageDefinition] = DEFAULT_LANGUAGES,
    glyphs: Iterable[GlyphSubstitution] = DEFAULT_GLYPHS,
) -> str:
    """Render the bundled template from the Python-side tables."""
    active_style = style or StyleConfig()
    environment = latex_environment(TEMPLATE_DIR, strict=True)
    environment.filters["lst_keys"] = listings_keys
    colors = []
    for name, declared in active_style.colors.items():
        model, _, spec = declared.partition(":")
        colors.append({"name": name, "model": model, "spec": spec})
    try:
        template = environment.get_template(DEFAULT_TEMPLATE_NAME)
        return template.render(
            style=active_style,
            colors=colors,
            languages=list(languages),
            glyphs=list(glyphs),
        )
    except JinjaTemplateError as exc:
        raise TemplateError(f"Failed to render the default template: {exc}") from exc


@lru_cache(maxsize=1)
def _default_source() -> str:
    return render_default_template()


@dataclass(frozen=True, slots=True)
class TemplateDocument:
    """A validated template with its configuration tables."""

    source: str
    style: StyleConfig
    languages: LanguageTable
    glyphs: GlyphTable
    origin: Path | None = None

    @property
    def is_default(self) -> bool:
        return self.origin is None

    def with_metadata(
        self,
        *,
        title: str,
        authors: Sequence[str] = (),
        date: str = "",
    ) -> TemplateDocument:
        """Return a copy whose title, author and date placeholders are filled."""
        source = substitute_metadata(self.source, title=title, authors=authors, date=date)
        return replace(self, source=source)

    def splice(self, content: str) -> str:
        """Return the final LaTeX document with ``content`` at the marker."""
        return splice(self.source, content)


def load_template_source(
    source: str,
    *,
    origin: Path | None = None,
    aliases: Mapping[str, str] | None = None,
) -> TemplateDocument:
    """Validate ``source`` and build its :class:`TemplateDocument`."""
    find_marker(source)
    parsed = parse_template(source)
    for warning in parsed.warnings:
        logger.warning("%s: %s", origin or "default template", warning)
    languages = parsed.languages.with_aliases(aliases) if aliases else parsed.languages
    logger.debug(
        "Loaded template %s: %d languages, %d glyph substitutions",
        origin or "<default>",
        len(languages),
        len(parsed.glyphs),
    )
    return TemplateDocument(
        source=source,
        style=parsed.style,
        languages=languages,
        glyphs=parsed.glyphs,
        origin=origin,
    )


def load_template(
    path: Path | str | None = None,
    *,
    aliases: Mapping[str, str] | None = None,
) -> TemplateDocument:
    """Load the bundled template or the template stored at ``path``."""
    if path is None:
        return load_template_source(_default_source(), aliases=aliases)

    template_path = Path(path)
    try:
        source = template_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"Unable to read template '{template_path}': {exc}") from exc
    return load_template_source(source, origin=template_path, aliases=aliases)


__all__ = [
    "DEFAULT_TEMPLATE_NAME",
    "TEMPLATE_DIR",
    "TemplateDocument",
    "count_markers",
    "listings_keys",
    "listings_literal",
    "load_template",
    "load_template_source",
    "render_default_template",
]
