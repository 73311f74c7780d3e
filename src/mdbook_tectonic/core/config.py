"""Configuration models used by the backend and the template.

LatexConfig

`ignores` (`list[str]`)
: Chapter names that are not exported. Sub-chapters of an ignored chapter are
  still exported.

`latex` (`bool`)
: Write the spliced LaTeX document next to the other outputs.

`pdf` (`bool`)
: Compile the spliced document with Tectonic.

`markdown` (`bool`)
: Write the combined Markdown source of every exported chapter.

`custom_template` (`str | None`)
: Path of a LaTeX template relative to the book root, used instead of the
  bundled one.

`date` (`str`)
: LaTeX payload for the `\\date{}` macro, inserted verbatim.

`code_engine` (`"listings" | "pygments"`)
: Strategy used for fenced code blocks. `listings` defers colouring to the
  template's `\\lstdefinelanguage` tables, `pygments` colours tokens up front.

`language_aliases` (`dict[str, str]`)
: Extra code block tags mapped onto declared language names.

`tectonic` (`str | None`)
: Explicit path to the Tectonic binary. Defaults to the first one on `PATH`.

StyleConfig

`margin` (`str`)
: Page margin handed to the `geometry` package.

`link_color`, `cite_color`, `url_color` (`str`)
: `hyperref` colours for internal links, citations and URLs.

`code_font_size` (`str`)
: Font size switch used inside code blocks.

`code_frame`, `code_line_numbers`, `code_first_number`, `code_columns`, `code_tab_size`
: `listings` options for frames, line numbers, column layout and tabs.

`colors` (`dict[str, str]`)
: Named colours declared with `\\definecolor`, stored as `model:spec`.

`section_page_break` (`bool`)
: Start every top-level section on a new page.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


def _kebab(name: str) -> str:
    return name.replace("_", "-")


CodeEngine = Literal["listings", "pygments"]

DEFAULT_DATE = r"\today"


class LatexConfig(BaseModel):
    """Options read from the ``[output.tectonic]`` table of ``book.toml``."""

    # mdbook stores its own keys (command, optional, ...) in the same table.
    model_config = ConfigDict(extra="ignore", alias_generator=_kebab, populate_by_name=True)

    ignores: list[str] = Field(default_factory=list)
    latex: bool = True
    pdf: bool = True
    markdown: bool = True
    custom_template: str | None = None
    date: str = DEFAULT_DATE
    code_engine: CodeEngine = "listings"
    language_aliases: dict[str, str] = Field(default_factory=dict)
    tectonic: str | None = None

    @field_validator("code_engine", mode="before")
    @classmethod
    def _normalise_engine(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def from_output_tables(cls, output: dict[str, Any] | None) -> LatexConfig:
        """Build the configuration from mdbook's ``output`` table.

        Invalid options raise :class:`ConfigurationError`.
        """
        tables = output or {}
        for key in ("tectonic", "latex"):
            payload = tables.get(key)
            if not isinstance(payload, dict):
                continue
            try:
                return cls.model_validate(payload)
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid [output.{key}] options: {exc}") from exc
        return cls()


class StyleConfig(BaseModel):
    """Visual parameters declared by a template, immutable for a render pass."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    margin: str = "1in"
    link_color: str = "red!50!black"
    cite_color: str = "blue!50!black"
    url_color: str = "blue!80!black"
    code_font_size: str = r"\small"
    code_frame: str = "tb"
    code_line_numbers: str = "left"
    code_first_number: int = 1
    code_columns: str = "fixed"
    code_tab_size: int = 2
    colors: dict[str, str] = Field(
        default_factory=lambda: {
            "codekeyword": "HTML:7F0055",
            "codesecondary": "HTML:0055AA",
            "codecomment": "HTML:3F7F5F",
            "codestring": "HTML:2A00FF",
            "codenumber": "gray:0.5",
        }
    )
    section_page_break: bool = True

    def color_hex(self, name: str) -> str | None:
        """Return a ``#rrggbb`` value for a declared colour when convertible."""
        declared = self.colors.get(name)
        if declared is None:
            return None
        model, _, spec = declared.partition(":")
        model = model.strip()
        spec = spec.strip()
        if model == "HTML" and len(spec) == 6:
            return f"#{spec.lower()}"
        if model == "RGB":
            parts = [int(float(part)) for part in spec.split(",")]
            if len(parts) == 3:
                return "#" + "".join(f"{max(0, min(255, part)):02x}" for part in parts)
        if model == "rgb":
            parts = [round(float(part) * 255) for part in spec.split(",")]
            if len(parts) == 3:
                return "#" + "".join(f"{max(0, min(255, part)):02x}" for part in parts)
        if model == "gray":
            level = round(float(spec) * 255)
            return "#" + f"{max(0, min(255, level)):02x}" * 3
        return None


__all__ = ["DEFAULT_DATE", "CodeEngine", "LatexConfig", "StyleConfig"]
