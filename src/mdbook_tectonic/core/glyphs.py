"""Unicode glyph substitutions for characters fonts rarely cover."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

from .exceptions import ConfigurationError


GlyphKind = Literal["primitive", "text"]


@dataclass(frozen=True, slots=True)
class GlyphSubstitution:
    """Replacement rule for a single source character."""

    source: str
    replacement: str
    kind: GlyphKind = "primitive"

    def __post_init__(self) -> None:
        if len(self.source) != 1:
            raise ConfigurationError(
                f"Glyph substitutions map exactly one character, got {self.source!r}"
            )


@dataclass(slots=True)
class GlyphTable:
    """Exact-match lookup table from characters to substitutions."""

    _entries: dict[str, GlyphSubstitution] = field(default_factory=dict)

    @classmethod
    def from_substitutions(cls, substitutions: Iterable[GlyphSubstitution]) -> GlyphTable:
        table = cls()
        for substitution in substitutions:
            table.register(substitution)
        return table

    def register(self, substitution: GlyphSubstitution) -> None:
        """Add a rule; a character may only be declared once."""
        if substitution.source in self._entries:
            raise ConfigurationError(
                f"Glyph U+{ord(substitution.source):04X} ({substitution.source}) "
                "is substituted more than once"
            )
        self._entries[substitution.source] = substitution

    def lookup(self, char: str) -> GlyphSubstitution | None:
        return self._entries.get(char)

    def apply(self, text: str) -> str:
        """Replace every declared character in ``text`` by its rendering rule."""
        if not self._entries or not text:
            return text
        parts: list[str] = []
        for char in text:
            entry = self._entries.get(char)
            parts.append(entry.replacement if entry is not None else char)
        return "".join(parts)

    @property
    def sources(self) -> frozenset[str]:
        return frozenset(self._entries)

    def __contains__(self, char: object) -> bool:
        return char in self._entries

    def __iter__(self) -> Iterator[GlyphSubstitution]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


# Box-drawing primitives are drawn with rules so they work in any font.
DEFAULT_GLYPHS: tuple[GlyphSubstitution, ...] = (
    GlyphSubstitution(
        "└",
        r"\makebox[0.6em][l]{\rule[0.5ex]{0.4pt}{1.5ex}\rule[0.5ex]{0.6em}{0.4pt}}",
    ),
    GlyphSubstitution("─", r"\makebox[0.6em][l]{\rule[0.5ex]{0.6em}{0.4pt}}"),
    GlyphSubstitution(
        "├",
        r"\makebox[0.6em][l]{\rule[-0.5ex]{0.4pt}{2.5ex}\rule[0.5ex]{0.6em}{0.4pt}}",
    ),
    GlyphSubstitution("’", "'", kind="text"),
    GlyphSubstitution("‘", "`", kind="text"),
    GlyphSubstitution("“", "``", kind="text"),
    GlyphSubstitution("”", "''", kind="text"),
)


def default_glyph_table() -> GlyphTable:
    """Return a fresh table with the bundled substitutions."""
    return GlyphTable.from_substitutions(DEFAULT_GLYPHS)


def classify_replacement(replacement: str) -> GlyphKind:
    """Guess whether a declared replacement draws something or is plain text."""
    return "primitive" if "\\" in replacement else "text"


__all__ = [
    "DEFAULT_GLYPHS",
    "GlyphKind",
    "GlyphSubstitution",
    "GlyphTable",
    "classify_replacement",
    "default_glyph_table",
]
