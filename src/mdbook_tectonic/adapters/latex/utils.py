"""Utility helpers specific to LaTeX rendering."""

from __future__ import annotations

from mdbook_tectonic.core.glyphs import GlyphTable


_BASIC_LATEX_ESCAPE_MAP = {
    "&": r"\&",
    "%": r"\%",
    "#": r"\#",
    "$": r"\$",
    "_": r"\_",
    "^": r"\^{}",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "\\": r"\textbackslash{}",
}


def escape_latex_chars(text: str, *, glyphs: GlyphTable | None = None) -> str:
    """Escape LaTeX special characters.

    When ``glyphs`` is given, characters it declares are replaced by their
    substitution instead of being emitted literally.
    """
    if not text:
        return text
    parts: list[str] = []
    for char in text:
        escaped = _BASIC_LATEX_ESCAPE_MAP.get(char)
        if escaped is not None:
            parts.append(escaped)
        elif glyphs is not None and char in glyphs:
            parts.append(glyphs.apply(char))
        else:
            parts.append(char)
    return "".join(parts)


__all__ = ["escape_latex_chars"]
