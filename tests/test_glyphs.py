import pytest

from mdbook_tectonic.adapters.latex.utils import escape_latex_chars
from mdbook_tectonic.core.exceptions import ConfigurationError
from mdbook_tectonic.core.glyphs import (
    DEFAULT_GLYPHS,
    GlyphSubstitution,
    GlyphTable,
    classify_replacement,
    default_glyph_table,
)


DECLARED = {"└", "─", "├", "’", "‘", "“", "”"}


def test_default_table_is_total_over_declared_characters() -> None:
    table = default_glyph_table()

    assert table.sources == DECLARED
    assert all(char in table for char in DECLARED)


def test_default_table_is_injective() -> None:
    sources = [glyph.source for glyph in DEFAULT_GLYPHS]

    assert len(sources) == len(set(sources))
    assert len(default_glyph_table()) == len(DEFAULT_GLYPHS)


def test_box_drawing_characters_use_primitives() -> None:
    table = default_glyph_table()

    for char in ("└", "─", "├"):
        substitution = table.lookup(char)
        assert substitution is not None
        assert substitution.kind == "primitive"
        assert r"\rule" in substitution.replacement


def test_quotes_fall_back_to_tex_ligatures() -> None:
    table = default_glyph_table()

    assert table.apply("‘a’ “b”") == "`a' ``b''"


def test_apply_leaves_undeclared_characters() -> None:
    assert default_glyph_table().apply("plain é") == "plain é"


def test_duplicate_character_is_rejected() -> None:
    table = GlyphTable()
    table.register(GlyphSubstitution("─", "-", kind="text"))

    with pytest.raises(ConfigurationError):
        table.register(GlyphSubstitution("─", "--", kind="text"))


def test_substitution_maps_exactly_one_character() -> None:
    with pytest.raises(ConfigurationError):
        GlyphSubstitution("‘’", "`")


def test_classify_replacement() -> None:
    assert classify_replacement(r"\rule{1em}{0.4pt}") == "primitive"
    assert classify_replacement("''") == "text"


def test_escape_applies_glyphs_when_given() -> None:
    escaped = escape_latex_chars("it’s 100%", glyphs=default_glyph_table())

    assert escaped == r"it's 100\%"


def test_escape_keeps_glyphs_without_table() -> None:
    assert escape_latex_chars("├─ a_b") == r"├─ a\_b"


def test_escape_special_characters() -> None:
    assert escape_latex_chars("#$%&_{}") == r"\#\$\%\&\_\{\}"
    assert escape_latex_chars("~^\\") == r"\textasciitilde{}\^{}\textbackslash{}"
