import pytest

from mdbook_tectonic.core.exceptions import ConfigurationError
from mdbook_tectonic.core.languages import (
    DEFAULT_LANGUAGES,
    LanguageDefinition,
    LanguageTable,
    default_language_table,
)


def test_default_table_declares_every_bundled_language() -> None:
    table = default_language_table()

    assert table.names() == [definition.name for definition in DEFAULT_LANGUAGES]
    assert "rust" in table
    assert "JavaScript" in table
    assert "javascript" in table


@pytest.mark.parametrize(
    "tag",
    ["rust", "rs", "text", "console", "python", "c++", "", None, "rust,ignore", "RUST"],
)
def test_resolution_never_fails(tag: str | None) -> None:
    table = default_language_table()

    definition = table.resolve(tag)

    assert definition is None or isinstance(definition, LanguageDefinition)


def test_resolution_strips_mdbook_attributes() -> None:
    table = default_language_table()

    definition = table.resolve("rust,ignore")

    assert definition is not None
    assert definition.name == "rust"


def test_resolution_prefers_exact_case() -> None:
    table = default_language_table()

    assert table.resolve("JavaScript").name == "JavaScript"
    assert table.resolve("javascript").name == "javascript"
    assert table.resolve("Rust").name == "rust"


def test_unknown_language_resolves_to_plain_text() -> None:
    assert default_language_table().resolve("brainfuck") is None


def test_rust_rules_are_rust_specific() -> None:
    rust = default_language_table()["rust"]

    assert "fn" in rust.keywords
    assert "true" in rust.keywords
    assert "function" not in rust.keywords
    assert rust.line_comment == "//"
    assert rust.block_comment == ("/*", "*/")


def test_definitions_without_rules() -> None:
    table = default_language_table()

    assert not table["text"].has_rules
    assert not table["console"].has_rules
    assert table["rust"].has_rules


def test_keyword_matching_follows_case_policy() -> None:
    table = default_language_table()

    assert table["yaml"].is_keyword("TRUE")
    assert table["rust"].is_keyword("true")
    assert not table["rust"].is_keyword("TRUE")


def test_duplicate_names_are_rejected() -> None:
    table = LanguageTable()
    table.register(LanguageDefinition(name="rust"))

    with pytest.raises(ConfigurationError):
        table.register(LanguageDefinition(name="rust"))


def test_empty_names_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        LanguageTable().register(LanguageDefinition(name="  "))


def test_aliases_extend_a_copy() -> None:
    table = default_language_table()

    extended = table.with_aliases({"sh": "shell", "bash": "shell"})

    assert extended.resolve("sh").name == "shell"
    assert extended.aliases == {"sh": "shell", "bash": "shell"}
    assert table.resolve("sh") is None


def test_alias_must_target_a_declared_language() -> None:
    with pytest.raises(ConfigurationError):
        default_language_table().with_aliases({"py": "python"})


def test_alias_cannot_shadow_a_language() -> None:
    with pytest.raises(ConfigurationError):
        default_language_table().with_aliases({"rs": "rust"})
