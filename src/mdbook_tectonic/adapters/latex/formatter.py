"""Utilities for rendering LaTeX partials (snippets)."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Template
from requests.utils import requote_uri as requote_url

from mdbook_tectonic.core.config import StyleConfig
from mdbook_tectonic.core.glyphs import GlyphTable
from mdbook_tectonic.core.templates.environment import latex_environment

from .highlighting import PygmentsLatexHighlighter
from .utils import escape_latex_chars


if TYPE_CHECKING:  # pragma: no cover - typing only
    from mdbook_tectonic.core.context import DocumentState
    from mdbook_tectonic.core.languages import LanguageDefinition


TEMPLATE_DIR = Path(__file__).resolve().parent / "partials"

_URL_ESCAPES = {"%": r"\%", "#": r"\#", "\\": r"\\"}


class LaTeXFormatter:
    """Render LaTeX partials with the LaTeX-friendly Jinja delimiters.

    ``formatter.strong(text="x")`` renders ``partials/strong.tex``; a
    ``handle_<name>`` method takes precedence over the partial of the same name.
    """

    def __init__(
        self,
        template_dir: Path = TEMPLATE_DIR,
        *,
        style: StyleConfig | None = None,
        glyphs: GlyphTable | None = None,
        code_engine: str = "listings",
    ) -> None:
        self.env = latex_environment(template_dir)
        self.style = style or StyleConfig()
        self.glyphs = glyphs
        self.code_engine = code_engine
        self.env.filters.setdefault("latex_escape", self.escape)

        self._template_names = {
            path.relative_to(template_dir).with_suffix("").as_posix(): path.name
            for path in template_dir.glob("*.tex")
        }
        self.templates: dict[str, Template] = {}
        self._pygments: PygmentsLatexHighlighter | None = None

    @property
    def template_names(self) -> set[str]:
        return set(self._template_names)

    def _get_template(self, key: str) -> Template:
        template = self.templates.get(key)
        if template is not None:
            return template
        template_name = self._template_names.get(key)
        if template_name is None:
            raise KeyError(key)
        template = self.env.get_template(template_name)
        self.templates[key] = template
        return template

    def __getattr__(self, method: str) -> Callable[..., str]:
        """Proxy calls to custom handlers or partials."""
        try:
            return object.__getattribute__(self, f"handle_{method}")
        except AttributeError:
            pass

        try:
            template = self._get_template(method)
        except KeyError:
            raise AttributeError(f"Object has no template for '{method}'") from None

        def render_template(*args: Any, **kwargs: Any) -> str:
            if len(args) > 1:
                msg = f"Expected at most 1 argument, got {len(args)}, use keyword arguments instead"
                raise ValueError(msg)
            if args:
                kwargs["text"] = args[0]
            return template.render(**kwargs)

        return render_template

    def __getitem__(self, key: str) -> Callable[..., str]:
        return self._get_template(key).render

    def escape(self, value: str) -> str:
        """Escape text, applying the glyph substitutions when configured."""
        return escape_latex_chars(value, glyphs=self.glyphs)

    def escape_url(self, url: str) -> str:
        """Escape a URL for use inside ``\\href`` and ``\\url``."""
        quoted = requote_url(url)
        return "".join(_URL_ESCAPES.get(char, char) for char in quoted)

    @property
    def highlighter(self) -> PygmentsLatexHighlighter:
        if self._pygments is None:
            self._pygments = PygmentsLatexHighlighter(self.style)
        return self._pygments

    def handle_codeinline(self, text: str) -> str:
        """Render inline code inside ``\\texttt`` allowing breaks after dashes."""
        escaped = escape_latex_chars(text, glyphs=self.glyphs).replace("-", "-\\allowbreak{}")
        return self._get_template("codeinline").render(text=escaped)

    def handle_codeblock(
        self,
        code: str,
        language: LanguageDefinition | None = None,
        *,
        engine: str | None = None,
        state: DocumentState | None = None,
    ) -> str:
        """Render a fenced code block with the selected engine.

        ``language`` is the resolved definition; ``None`` renders plain text.
        """
        selected = (engine or self.code_engine).lower()
        if code.endswith("\n"):
            code = code[:-1]

        if selected == "pygments":
            latex_code, style_defs = self.highlighter.render(code, language)
            if state is not None and style_defs:
                state.pygments_styles.setdefault(self.highlighter.style_key, style_defs)
            return self._get_template("codeblock_pygments").render(code=latex_code.rstrip("\n"))

        options = f"[language={language.name}]" if language is not None else ""
        return self._get_template("codeblock_listings").render(code=code, options=options)

    def handle_href(self, text: str, url: str) -> str:
        return self._get_template("href").render(text=text, url=self.escape_url(url))

    def handle_url(self, url: str) -> str:
        return self._get_template("url").render(url=self.escape_url(url))

    def handle_heading(self, text: str, level: int, ref: str) -> str:
        """Render a heading; deeper levels use ``\\subparagraph``."""
        command = HEADING_COMMANDS.get(level, r"\subparagraph")
        return self._get_template("heading").render(command=command, text=text, ref=ref)


HEADING_COMMANDS = {
    1: r"\section",
    2: r"\subsection",
    3: r"\subsubsection",
    4: r"\paragraph",
    5: r"\subparagraph",
}


__all__ = ["HEADING_COMMANDS", "TEMPLATE_DIR", "LaTeXFormatter"]
