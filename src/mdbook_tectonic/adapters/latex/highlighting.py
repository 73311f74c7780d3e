"""Pygments integration driven by the template's language table."""

from __future__ import annotations

import re

from pygments import highlight
from pygments.formatters import LatexFormatter
from pygments.lexer import Lexer, RegexLexer, words
from pygments.lexers import TextLexer
from pygments.style import Style
from pygments.token import Comment, Keyword, Name, Number, String, Text, Whitespace

from mdbook_tectonic.core.config import StyleConfig
from mdbook_tectonic.core.languages import LanguageDefinition


_KEYWORD_PREFIX = r"(?<![\w.])"
_KEYWORD_SUFFIX = r"(?![\w])"


def build_lexer(language: LanguageDefinition | None) -> Lexer:
    """Return a lexer applying the keyword, comment and string rules of ``language``.

    Languages without rules, and unresolved ones, use the plain text lexer.
    """
    if language is None or not language.has_rules:
        return TextLexer(stripnl=False)

    rules: list[tuple[str, object]] = []
    if language.block_comment:
        start, end = language.block_comment
        rules.append((re.escape(start) + r"(?s:.*?)" + re.escape(end), Comment.Multiline))
    if language.line_comment:
        rules.append((re.escape(language.line_comment) + r"[^\n]*", Comment.Single))
    for delimiter in language.string_delimiters:
        quote = re.escape(delimiter)
        rules.append((rf"{quote}(?:\\.|[^{quote}\\])*{quote}", String))
    if language.keywords:
        rules.append(
            (words(language.keywords, prefix=_KEYWORD_PREFIX, suffix=_KEYWORD_SUFFIX), Keyword)
        )
    if language.secondary_keywords:
        rules.append(
            (
                words(language.secondary_keywords, prefix=_KEYWORD_PREFIX, suffix=_KEYWORD_SUFFIX),
                Keyword.Type,
            )
        )
    rules.extend(
        [
            (r"\d+(?:\.\d+)?", Number),
            (r"\w+", Name),
            (r"\s+", Whitespace),
            (r".", Text),
        ]
    )

    flags = re.MULTILINE
    if not language.case_sensitive:
        flags |= re.IGNORECASE

    class_name = re.sub(r"\W", "", language.name.title()) or "Template"
    lexer_class = type(
        f"{class_name}TemplateLexer",
        (RegexLexer,),
        {
            "name": language.name,
            "aliases": [],
            "flags": flags,
            "tokens": {"root": rules},
        },
    )
    return lexer_class(stripnl=False)


def build_style(style: StyleConfig) -> type[Style]:
    """Derive a Pygments style from the template colours.

    Keywords are bold in the keyword colour, like the ``listings`` setup.
    """
    styles = {}
    keyword = style.color_hex("codekeyword")
    secondary = style.color_hex("codesecondary")
    comment = style.color_hex("codecomment")
    string = style.color_hex("codestring")
    number = style.color_hex("codenumber")
    styles[Keyword] = f"bold {keyword}" if keyword else "bold"
    styles[Keyword.Type] = f"bold {secondary}" if secondary else "bold"
    if comment:
        styles[Comment] = f"italic {comment}"
    if string:
        styles[String] = string
    if number:
        styles[Number] = number
    return type(
        "TemplateStyle",
        (Style,),
        {"background_color": "#ffffff", "default_style": "", "styles": styles},
    )


def verbatim_options(style: StyleConfig) -> str:
    """Translate the code block style to ``fancyvrb`` options.

    Pygments adds ``commandchars`` itself.
    """
    options = [f"fontsize={style.code_font_size}"]
    if style.code_line_numbers in {"left", "right"}:
        options.append(f"numbers={style.code_line_numbers}")
        options.append(f"firstnumber={style.code_first_number}")
    if style.code_frame:
        if set(style.code_frame.lower()) == {"t", "b"}:
            options.append("frame=lines")
        elif style.code_frame.lower() in {"single", "trbl"}:
            options.append("frame=single")
    options.append(f"tabsize={style.code_tab_size}")
    return ",".join(options)


class PygmentsLatexHighlighter:
    """Convert source code to LaTeX using lexers built from the language table."""

    def __init__(self, style: StyleConfig, *, commandprefix: str = "PY") -> None:
        self.style = style
        self.commandprefix = commandprefix
        self._style_class = build_style(style)
        self._lexers: dict[str, Lexer] = {}

    @property
    def style_key(self) -> str:
        return f"template:{self.commandprefix}"

    def lexer_for(self, language: LanguageDefinition | None) -> Lexer:
        key = language.name if language is not None else ""
        lexer = self._lexers.get(key)
        if lexer is None:
            lexer = build_lexer(language)
            self._lexers[key] = lexer
        return lexer

    def render(self, code: str, language: LanguageDefinition | None) -> tuple[str, str]:
        """Return the LaTeX code and the style definitions it needs."""
        formatter = LatexFormatter(
            full=False,
            style=self._style_class,
            commandprefix=self.commandprefix,
            verboptions=verbatim_options(self.style),
        )
        latex_code = highlight(code, self.lexer_for(language), formatter)
        return latex_code, formatter.get_style_defs()


__all__ = ["PygmentsLatexHighlighter", "build_lexer", "build_style", "verbatim_options"]
