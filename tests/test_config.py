import pydantic
import pytest

from mdbook_tectonic.core.config import DEFAULT_DATE, LatexConfig, StyleConfig
from mdbook_tectonic.core.exceptions import ConfigurationError, LatexRenderingError


def test_defaults() -> None:
    config = LatexConfig()

    assert config.latex is True
    assert config.pdf is True
    assert config.markdown is True
    assert config.ignores == []
    assert config.custom_template is None
    assert config.date == DEFAULT_DATE == r"\today"
    assert config.code_engine == "listings"
    assert config.language_aliases == {}


def test_kebab_case_keys() -> None:
    config = LatexConfig.model_validate(
        {
            "custom-template": "tpl/book.tex",
            "code-engine": "Pygments",
            "language-aliases": {"sh": "shell"},
            "ignores": ["Contributors"],
            "command": "mdbook-tectonic",
        }
    )

    assert config.custom_template == "tpl/book.tex"
    assert config.code_engine == "pygments"
    assert config.language_aliases == {"sh": "shell"}
    assert config.ignores == ["Contributors"]


def test_field_names_are_accepted() -> None:
    config = LatexConfig(custom_template="book.tex", code_engine="listings")

    assert config.custom_template == "book.tex"


def test_tectonic_table_wins_over_latex() -> None:
    output = {"tectonic": {"pdf": False}, "latex": {"pdf": True, "latex": False}}

    config = LatexConfig.from_output_tables(output)

    assert config.pdf is False
    assert config.latex is True


def test_latex_table_is_a_fallback() -> None:
    config = LatexConfig.from_output_tables({"latex": {"markdown": False}})

    assert config.markdown is False


@pytest.mark.parametrize("output", [None, {}, {"html": {}}, {"tectonic": True}])
def test_defaults_without_a_table(output) -> None:
    assert LatexConfig.from_output_tables(output) == LatexConfig()


def test_unknown_engine_is_rejected() -> None:
    with pytest.raises(pydantic.ValidationError):
        LatexConfig.model_validate({"code-engine": "minted"})


@pytest.mark.parametrize("table", ["tectonic", "latex"])
def test_invalid_output_table_raises_configuration_error(table: str) -> None:
    with pytest.raises(ConfigurationError, match=rf"\[output\.{table}\]") as excinfo:
        LatexConfig.from_output_tables({table: {"code-engine": "minted"}})

    assert isinstance(excinfo.value, LatexRenderingError)
    assert isinstance(excinfo.value.__cause__, pydantic.ValidationError)


def test_style_is_frozen() -> None:
    style = StyleConfig()

    with pytest.raises(pydantic.ValidationError):
        style.margin = "2cm"


def test_style_rejects_unknown_fields() -> None:
    with pytest.raises(pydantic.ValidationError):
        StyleConfig(page_size="a4")


@pytest.mark.parametrize(
    ("colors", "name", "expected"),
    [
        (None, "codekeyword", "#7f0055"),
        (None, "codenumber", "#808080"),
        ({"accent": "RGB:255,0,16"}, "accent", "#ff0010"),
        ({"accent": "rgb:1,0.5,0"}, "accent", "#ff8000"),
        ({"accent": "cmyk:0,1,1,0"}, "accent", None),
        (None, "missing", None),
    ],
)
def test_color_hex(colors, name: str, expected: str | None) -> None:
    style = StyleConfig() if colors is None else StyleConfig(colors=colors)

    assert style.color_hex(name) == expected
