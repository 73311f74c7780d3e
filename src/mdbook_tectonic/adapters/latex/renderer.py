"""HTML to LaTeX renderer driving the rule engine."""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, FeatureNotFound

from mdbook_tectonic.core.config import LatexConfig
from mdbook_tectonic.core.context import DocumentState, RenderContext
from mdbook_tectonic.core.diagnostics import DiagnosticEmitter, NullEmitter
from mdbook_tectonic.core.exceptions import LatexRenderingError
from mdbook_tectonic.core.glyphs import default_glyph_table
from mdbook_tectonic.core.rules import RenderEngine, rule_definition
from mdbook_tectonic.core.templates import TemplateDocument

from .formatter import LaTeXFormatter


_BLANK_LINES = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")
_VERBATIM = re.compile(r"\\begin\{(lstlisting|Verbatim)\}.*?\\end\{\1\}", re.DOTALL)


class LaTeXRenderer:
    """Convert HTML fragments produced from chapters into LaTeX."""

    def __init__(
        self,
        template: TemplateDocument,
        config: LatexConfig | None = None,
        formatter: LaTeXFormatter | None = None,
        parser: str = "lxml",
    ) -> None:
        self.template = template
        self.config = config or LatexConfig()
        # Templates without \newunicodechar rules get the substitutions inline.
        glyphs = None if template.glyphs else default_glyph_table()
        self.formatter = formatter or LaTeXFormatter(
            style=template.style,
            glyphs=glyphs,
            code_engine=self.config.code_engine,
        )
        self.parser_backend = parser
        self.engine = RenderEngine()
        self._register_builtin_handlers()

    def _register_builtin_handlers(self) -> None:
        from ..handlers import (
            basic as basic_handlers,
            blocks as block_handlers,
            code as code_handlers,
            inline as inline_handlers,
            links as link_handlers,
            media as media_handlers,
        )

        self.engine.collect_from(basic_handlers)
        self.engine.collect_from(code_handlers)
        self.engine.collect_from(inline_handlers)
        self.engine.collect_from(link_handlers)
        self.engine.collect_from(block_handlers)
        self.engine.collect_from(media_handlers)

    def register(self, handler: Any) -> None:
        """Register a decorated callable or every handler exposed by ``handler``."""
        if rule_definition(handler) is not None:
            self.engine.register(handler)
            return
        self.engine.collect_from(handler)

    def _parse(self, html: str, emitter: DiagnosticEmitter) -> BeautifulSoup:
        try:
            return BeautifulSoup(html, self.parser_backend)
        except FeatureNotFound:
            if self.parser_backend == "html.parser":
                raise
            emitter.event(
                "parser_fallback",
                {"preferred": self.parser_backend, "fallback": "html.parser"},
            )
            self.parser_backend = "html.parser"
            return BeautifulSoup(html, self.parser_backend)

    def render(
        self,
        html: str,
        *,
        state: DocumentState | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> str:
        """Render an HTML fragment into LaTeX."""
        active_emitter = emitter or NullEmitter()
        soup = self._parse(html, active_emitter)
        context = RenderContext(
            config=self.config,
            template=self.template,
            formatter=self.formatter,
            document=soup,
            state=state or DocumentState(),
            emitter=active_emitter,
        )

        try:
            self.engine.run(soup, context)
        except LatexRenderingError:
            raise
        except Exception as exc:
            raise LatexRenderingError(f"LaTeX rendering failed: {exc}") from exc

        return self._collect_output(soup)

    def _collect_output(self, soup: BeautifulSoup) -> str:
        """Join the generated LaTeX, collapsing runs of blank lines."""
        raw = soup.get_text()
        chunks: list[str] = []
        cursor = 0
        for match in _VERBATIM.finditer(raw):
            chunks.append(_BLANK_LINES.sub("\n\n", raw[cursor : match.start()]))
            chunks.append(match.group(0))
            cursor = match.end()
        chunks.append(_BLANK_LINES.sub("\n\n", raw[cursor:]))
        text = "".join(chunks)
        return text.strip("\n") + "\n" if text.strip() else ""

    def describe_registered_rules(self) -> list[dict[str, object]]:
        return self.engine.registry.describe()


__all__ = ["LaTeXRenderer"]
