"""Extract the configuration tables declared by a LaTeX template.

The parser only understands the handful of declarations a book template is
made of. Everything else in the source is ignored.

`\\usepackage[margin=…]{geometry}`, `\\geometry{…}`
: page margin.

`\\hypersetup{…}`
: link, citation and URL colours.

`\\definecolor{name}{model}{spec}`
: named colours.

`\\lstset{…}`
: code block appearance.

`\\lstdefinelanguage{name}{…}`
: one :class:`LanguageDefinition` per declaration.

`\\newunicodechar{c}{…}`
: one :class:`GlyphSubstitution` per declaration.

`\\renewcommand{\\section}{\\clearpage…}`
: page break before top-level sections.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
import re
from typing import Any

from ..config import StyleConfig
from ..exceptions import ConfigurationError
from ..glyphs import GlyphSubstitution, GlyphTable, classify_replacement
from ..languages import LanguageDefinition, LanguageTable


_COMMENT_PATTERN = re.compile(r"(?<!\\)(?P<breaks>(?:\\\\)*)%.*$", re.MULTILINE)
_CONTROL_SEQUENCE = re.compile(r"\\[A-Za-z@]+")
_UNESCAPE_PATTERN = re.compile(r"\\([#%{}\\&$_])")
_SIZE_PATTERN = re.compile(
    r"\\(tiny|scriptsize|footnotesize|small|normalsize|large|Large|LARGE|huge|Huge)\b"
)


@dataclass(slots=True)
class Argument:
    """Argument of a TeX command, either optional (``[...]``) or mandatory."""

    text: str
    optional: bool = False


@dataclass(slots=True)
class Command:
    """Occurrence of a command with the arguments read after it."""

    name: str
    arguments: list[Argument]
    start: int
    end: int

    @property
    def mandatory(self) -> list[str]:
        return [argument.text for argument in self.arguments if not argument.optional]

    @property
    def optional(self) -> list[str]:
        return [argument.text for argument in self.arguments if argument.optional]


@dataclass(slots=True)
class ParsedTemplate:
    """Configuration tables found in a template source."""

    style: StyleConfig
    languages: LanguageTable
    glyphs: GlyphTable
    warnings: list[str] = field(default_factory=list)


def strip_comments(source: str) -> str:
    """Remove TeX comments while keeping escaped percent signs.

    A ``%`` preceded by an even run of backslashes (``\\\\%``) starts a comment.
    """
    return _COMMENT_PATTERN.sub(lambda match: match.group("breaks"), source)


def unescape(value: str) -> str:
    """Undo the backslash escapes used inside ``listings`` key values."""
    return _UNESCAPE_PATTERN.sub(lambda match: match.group(1), value)


def read_group(source: str, index: int, opening: str = "{", closing: str = "}") -> tuple[str, int]:
    """Return the balanced group starting at ``index`` and the offset after it."""
    if index >= len(source) or source[index] != opening:
        raise ConfigurationError(f"Expected '{opening}' at offset {index}")
    depth = 0
    cursor = index
    while cursor < len(source):
        char = source[cursor]
        if char == "\\":
            cursor += 2
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return source[index + 1 : cursor], cursor + 1
        cursor += 1
    raise ConfigurationError(f"Unbalanced '{opening}' starting at offset {index}")


def _skip_spaces(source: str, index: int) -> int:
    while index < len(source) and source[index] in " \t\r\n":
        index += 1
    return index


def read_arguments(source: str, index: int, mandatory: int) -> tuple[list[Argument], int]:
    """Read optional and ``mandatory`` braced arguments following a command."""
    arguments: list[Argument] = []
    found = 0
    cursor = index
    while found < mandatory:
        probe = _skip_spaces(source, cursor)
        if probe >= len(source):
            break
        char = source[probe]
        if char == "[":
            text, cursor = read_group(source, probe, "[", "]")
            arguments.append(Argument(text, optional=True))
        elif char == "{":
            text, cursor = read_group(source, probe)
            arguments.append(Argument(text))
            found += 1
        elif found == 0 and char == "\\":
            # \newunicodechar and friends accept unbraced control sequences.
            match = _CONTROL_SEQUENCE.match(source, probe)
            if match is None:
                break
            arguments.append(Argument(match.group(0)))
            cursor = match.end()
            found += 1
        else:
            break
    return arguments, cursor


def iter_commands(source: str, name: str, mandatory: int) -> Iterator[Command]:
    """Yield every occurrence of ``\\name`` with its arguments."""
    pattern = re.compile(r"\\" + re.escape(name) + r"(?![A-Za-z@])")
    position = 0
    while True:
        match = pattern.search(source, position)
        if match is None:
            return
        arguments, end = read_arguments(source, match.end(), mandatory)
        yield Command(name=name, arguments=arguments, start=match.start(), end=end)
        position = max(end, match.end())


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on ``separator`` outside braces and brackets."""
    parts: list[str] = []
    depth = 0
    buffer: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            buffer.append(text[index : index + 2])
            index += 2
            continue
        if char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(buffer))
            buffer = []
        else:
            buffer.append(char)
        index += 1
    parts.append("".join(buffer))
    return [part.strip() for part in parts if part.strip()]


def parse_keyvals(text: str) -> list[tuple[str, str]]:
    """Parse a ``key=value`` list, keeping repeated keys in order."""
    pairs: list[tuple[str, str]] = []
    for entry in split_top_level(text):
        key, _, value = entry.partition("=")
        pairs.append((key.strip(), value.strip()))
    return pairs


def unwrap(value: str) -> str:
    """Remove one pair of enclosing braces when they span the whole value."""
    value = value.strip()
    if value.startswith("{"):
        try:
            inner, end = read_group(value, 0)
        except ConfigurationError:
            return value
        if end == len(value):
            return inner.strip()
    return value


def _split_words(value: str) -> tuple[str, ...]:
    return tuple(unescape(word) for word in split_top_level(unwrap(value)))


def _take_class(value: str) -> tuple[str | None, str]:
    """Split a leading ``[class]`` selector from a ``listings`` value."""
    value = value.strip()
    if value.startswith("["):
        selector, end = read_group(value, 0, "[", "]")
        return selector.strip(), value[end:].strip()
    return None, value


def _parse_comment(value: str) -> tuple[str | None, tuple[str, str] | None]:
    kind, rest = _take_class(value)
    delimiters: list[str] = []
    cursor = _skip_spaces(rest, 0)
    while cursor < len(rest) and rest[cursor] == "{":
        text, cursor = read_group(rest, cursor)
        delimiters.append(unescape(text))
        cursor = _skip_spaces(rest, cursor)
    if not delimiters:
        return None, None
    if kind in {"s", "n"} and len(delimiters) >= 2:
        return None, (delimiters[0], delimiters[1])
    return delimiters[0], None


def _parse_string(value: str) -> str | None:
    _, rest = _take_class(value)
    rest = unescape(unwrap(rest))
    return rest or None


def _parse_bool(value: str, *, key: str, language: str) -> bool:
    lowered = unwrap(value).lower()
    if lowered in {"true", ""}:
        return True
    if lowered == "false":
        return False
    raise ConfigurationError(f"Language '{language}' has an invalid {key} value {value!r}")


def parse_language(name: str, body: str) -> LanguageDefinition:
    """Build a :class:`LanguageDefinition` from ``\\lstdefinelanguage`` keys."""
    keywords: list[str] = []
    secondary: list[str] = []
    case_sensitive = True
    line_comment: str | None = None
    block_comment: tuple[str, str] | None = None
    strings: list[str] = []

    for key, value in parse_keyvals(body):
        lowered = key.lower()
        if lowered in {"keywords", "morekeywords"}:
            selector, rest = _take_class(value)
            target = secondary if selector not in {None, "1"} else keywords
            if lowered == "keywords" and target is keywords:
                keywords.clear()
            target.extend(_split_words(rest))
        elif lowered in {"ndkeywords", "morendkeywords"}:
            if lowered == "ndkeywords":
                secondary.clear()
            secondary.extend(_split_words(value))
        elif lowered == "sensitive":
            case_sensitive = _parse_bool(value, key=key, language=name)
        elif lowered in {"comment", "morecomment"}:
            line, block = _parse_comment(value)
            line_comment = line or line_comment
            block_comment = block or block_comment
        elif lowered in {"string", "morestring"}:
            if lowered == "string":
                strings.clear()
            delimiter = _parse_string(value)
            if delimiter and delimiter not in strings:
                strings.append(delimiter)

    return LanguageDefinition(
        name=name,
        keywords=tuple(dict.fromkeys(keywords)),
        secondary_keywords=tuple(dict.fromkeys(secondary)),
        case_sensitive=case_sensitive,
        line_comment=line_comment,
        block_comment=block_comment,
        string_delimiters=tuple(strings),
    )


def _language_commands(source: str) -> Iterator[tuple[str, str]]:
    for command in iter_commands(source, "lstdefinelanguage", mandatory=2):
        groups = command.mandatory
        if len(groups) < 2:
            raise ConfigurationError("Incomplete \\lstdefinelanguage declaration")
        name, body = groups[0].strip(), groups[1]
        following = _skip_spaces(source, command.end)
        if body.strip() and "=" not in body and source[following : following + 1] == "{":
            # \lstdefinelanguage{name}{base}{keys}
            body, _ = read_group(source, following)
        yield name, body


def _parse_style(source: str) -> tuple[dict[str, Any], list[str]]:
    values: dict[str, Any] = {}
    warnings: list[str] = []

    for command in iter_commands(source, "usepackage", mandatory=1):
        if command.mandatory and command.mandatory[0].strip() == "geometry":
            for option in command.optional:
                for key, value in parse_keyvals(option):
                    if key == "margin":
                        values["margin"] = unwrap(value)
    for command in iter_commands(source, "geometry", mandatory=1):
        for key, value in parse_keyvals(command.mandatory[0] if command.mandatory else ""):
            if key == "margin":
                values["margin"] = unwrap(value)

    hyper_keys = {"linkcolor": "link_color", "citecolor": "cite_color", "urlcolor": "url_color"}
    for command in iter_commands(source, "hypersetup", mandatory=1):
        for key, value in parse_keyvals(command.mandatory[0] if command.mandatory else ""):
            if key in hyper_keys:
                values[hyper_keys[key]] = unwrap(value)

    colors = dict(StyleConfig().colors)
    for command in iter_commands(source, "definecolor", mandatory=3):
        groups = command.mandatory
        if len(groups) != 3:
            warnings.append("Ignoring incomplete \\definecolor declaration")
            continue
        name, model, spec = (group.strip() for group in groups)
        colors[name] = f"{model}:{spec}"
    values["colors"] = colors

    for command in iter_commands(source, "lstset", mandatory=1):
        for key, value in parse_keyvals(command.mandatory[0] if command.mandatory else ""):
            value = unwrap(value)
            if key == "basicstyle":
                size = _SIZE_PATTERN.search(value)
                if size is not None:
                    values["code_font_size"] = "\\" + size.group(1)
            elif key == "numbers":
                values["code_line_numbers"] = value
            elif key == "firstnumber":
                try:
                    values["code_first_number"] = int(value)
                except ValueError:
                    warnings.append(f"Ignoring non-numeric firstnumber {value!r}")
            elif key == "frame":
                values["code_frame"] = value
            elif key == "columns":
                values["code_columns"] = value
            elif key == "tabsize":
                try:
                    values["code_tab_size"] = int(value)
                except ValueError:
                    warnings.append(f"Ignoring non-numeric tabsize {value!r}")

    page_break = False
    for command in iter_commands(source, "renewcommand", mandatory=2):
        groups = command.mandatory
        if len(groups) == 2 and groups[0].strip() == r"\section":
            page_break = "\\clearpage" in groups[1] or "\\newpage" in groups[1]
    values["section_page_break"] = page_break
    return values, warnings


def parse_template(source: str) -> ParsedTemplate:
    """Parse the configuration tables declared by ``source``.

    Raises :class:`ConfigurationError` on duplicate language names or glyphs.
    """
    body = strip_comments(source)
    style_values, warnings = _parse_style(body)

    languages = LanguageTable()
    for name, keys in _language_commands(body):
        languages.register(parse_language(name, keys))

    glyphs = GlyphTable()
    for command in iter_commands(body, "newunicodechar", mandatory=2):
        groups = command.mandatory
        if len(groups) != 2:
            raise ConfigurationError("Incomplete \\newunicodechar declaration")
        source_char = groups[0].strip()
        replacement = groups[1]
        glyphs.register(
            GlyphSubstitution(source_char, replacement, kind=classify_replacement(replacement))
        )

    return ParsedTemplate(
        style=StyleConfig(**style_values),
        languages=languages,
        glyphs=glyphs,
        warnings=warnings,
    )


__all__ = [
    "Argument",
    "Command",
    "ParsedTemplate",
    "iter_commands",
    "parse_keyvals",
    "parse_language",
    "parse_template",
    "read_arguments",
    "read_group",
    "split_top_level",
    "strip_comments",
    "unescape",
    "unwrap",
]
