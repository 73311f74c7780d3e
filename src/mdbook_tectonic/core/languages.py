"""Language table used to highlight fenced code blocks.

Every fenced block carries a language tag. The tag is looked up in a
:class:`LanguageTable` built from the template's ``\\lstdefinelanguage``
declarations. Unknown tags never fail the document: they resolve to ``None``
and the block is typeset as plain text.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
import logging

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LanguageDefinition:
    """Highlighting ruleset attached to a language name."""

    name: str
    keywords: tuple[str, ...] = ()
    secondary_keywords: tuple[str, ...] = ()
    case_sensitive: bool = True
    line_comment: str | None = None
    block_comment: tuple[str, str] | None = None
    string_delimiters: tuple[str, ...] = ()

    @property
    def has_rules(self) -> bool:
        """Return True when the definition colours anything at all."""
        return bool(
            self.keywords
            or self.secondary_keywords
            or self.line_comment
            or self.block_comment
            or self.string_delimiters
        )

    def is_keyword(self, token: str) -> bool:
        """Check whether ``token`` is a primary keyword under the case policy."""
        if self.case_sensitive:
            return token in self.keywords
        lowered = token.casefold()
        return any(lowered == keyword.casefold() for keyword in self.keywords)


@dataclass(slots=True)
class LanguageTable:
    """Mapping from language names to definitions with unique names."""

    _definitions: dict[str, LanguageDefinition] = field(default_factory=dict)
    _aliases: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_definitions(cls, definitions: Iterable[LanguageDefinition]) -> LanguageTable:
        table = cls()
        for definition in definitions:
            table.register(definition)
        return table

    def register(self, definition: LanguageDefinition) -> None:
        """Add a definition, rejecting empty and duplicate names."""
        name = definition.name.strip()
        if not name:
            raise ConfigurationError("Language definitions require a non-empty name")
        if name in self._definitions or name in self._aliases:
            raise ConfigurationError(f"Duplicate language definition '{name}'")
        self._definitions[name] = definition

    def add_alias(self, alias: str, target: str) -> None:
        """Make ``alias`` resolve to the declared language ``target``."""
        alias = alias.strip()
        if not alias:
            raise ConfigurationError("Language aliases require a non-empty name")
        if target not in self._definitions:
            raise ConfigurationError(
                f"Language alias '{alias}' refers to undeclared language '{target}'"
            )
        if alias in self._definitions:
            raise ConfigurationError(f"Language alias '{alias}' shadows a declared language")
        self._aliases[alias] = target

    def with_aliases(self, aliases: Mapping[str, str]) -> LanguageTable:
        """Return a copy of the table extended with ``aliases``."""
        table = LanguageTable(dict(self._definitions), dict(self._aliases))
        for alias, target in aliases.items():
            table.add_alias(alias, target)
        return table

    def resolve(self, name: str | None) -> LanguageDefinition | None:
        """Return the definition for a code block tag or ``None`` for plain text.

        Lookup is exact first, then through aliases, then case-insensitive.
        Attributes trailing the tag (``rust,ignore``) are ignored.
        """
        if not name:
            return None
        tag = name.strip().replace(",", " ").split(" ", 1)[0]
        if not tag:
            return None

        definition = self._definitions.get(tag)
        if definition is not None:
            return definition

        target = self._aliases.get(tag)
        if target is not None:
            return self._definitions[target]

        folded = tag.casefold()
        for candidate, definition in self._definitions.items():
            if candidate.casefold() == folded:
                return definition
        for alias, target in self._aliases.items():
            if alias.casefold() == folded:
                return self._definitions[target]

        logger.debug("No language definition for '%s', using plain text", tag)
        return None

    def names(self) -> list[str]:
        """Return declared names in declaration order."""
        return list(self._definitions)

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __getitem__(self, name: str) -> LanguageDefinition:
        return self._definitions[name]

    def __iter__(self) -> Iterator[LanguageDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


_RUST_KEYWORDS = (
    "as", "async", "await", "break", "const", "continue", "crate", "dyn", "else",
    "enum", "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop",
    "match", "mod", "move", "mut", "pub", "ref", "return", "self", "Self",
    "static", "struct", "super", "trait", "true", "type", "unsafe", "use",
    "where", "while",
)  # fmt: skip

_RUST_TYPES = (
    "bool", "char", "str", "u8", "u16", "u32", "u64", "u128", "usize", "i8",
    "i16", "i32", "i64", "i128", "isize", "f32", "f64", "String", "Vec",
    "Option", "Result", "Box", "Some", "None", "Ok", "Err",
)  # fmt: skip

_JAVASCRIPT_KEYWORDS = (
    "async", "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "export", "extends",
    "finally", "for", "function", "if", "import", "in", "instanceof", "let",
    "new", "return", "super", "switch", "this", "throw", "try", "typeof",
    "var", "void", "while", "with", "yield",
)  # fmt: skip

_JAVASCRIPT_LITERALS = ("true", "false", "null", "undefined", "NaN", "Infinity")

_SHELL_KEYWORDS = (
    "if", "then", "else", "elif", "fi", "for", "while", "until", "do", "done",
    "case", "esac", "in", "function", "return", "export", "local",
)  # fmt: skip

_SHELL_COMMANDS = ("cargo", "cd", "echo", "mdbook", "rustc", "rustup")

_POWERSHELL_KEYWORDS = (
    "begin", "break", "catch", "continue", "data", "do", "dynamicparam", "else",
    "elseif", "end", "exit", "filter", "finally", "for", "foreach", "from",
    "function", "if", "in", "param", "process", "return", "switch", "throw",
    "trap", "try", "until", "while",
)  # fmt: skip

_MAKE_KEYWORDS = (
    "define", "endef", "ifeq", "ifneq", "ifdef", "ifndef", "else", "endif",
    "include", "export", "override",
)  # fmt: skip


def _rust(name: str) -> LanguageDefinition:
    return LanguageDefinition(
        name=name,
        keywords=_RUST_KEYWORDS,
        secondary_keywords=_RUST_TYPES,
        line_comment="//",
        block_comment=("/*", "*/"),
        string_delimiters=('"',),
    )


def _javascript(name: str) -> LanguageDefinition:
    return LanguageDefinition(
        name=name,
        keywords=_JAVASCRIPT_KEYWORDS,
        secondary_keywords=_JAVASCRIPT_LITERALS,
        line_comment="//",
        block_comment=("/*", "*/"),
        string_delimiters=('"', "'", "`"),
    )


DEFAULT_LANGUAGES: tuple[LanguageDefinition, ...] = (
    _rust("rust"),
    _rust("rs"),
    LanguageDefinition(name="console"),
    LanguageDefinition(
        name="handlebars",
        block_comment=("{{!--", "--}}"),
        string_delimiters=('"',),
    ),
    LanguageDefinition(
        name="shell",
        keywords=_SHELL_KEYWORDS,
        secondary_keywords=_SHELL_COMMANDS,
        line_comment="#",
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="json",
        keywords=("true", "false", "null"),
        string_delimiters=('"',),
    ),
    LanguageDefinition(
        name="yaml",
        keywords=("true", "false", "null", "yes", "no", "on", "off"),
        case_sensitive=False,
        line_comment="#",
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="toml",
        keywords=("true", "false"),
        line_comment="#",
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(name="diff"),
    _javascript("JavaScript"),
    _javascript("javascript"),
    LanguageDefinition(name="text"),
    LanguageDefinition(name="hbs"),
    LanguageDefinition(name="cmd"),
    LanguageDefinition(
        name="powershell",
        keywords=_POWERSHELL_KEYWORDS,
        case_sensitive=False,
        line_comment="#",
        block_comment=("<#", "#>"),
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(
        name="makefile",
        keywords=_MAKE_KEYWORDS,
        secondary_keywords=(".PHONY",),
        line_comment="#",
        string_delimiters=('"', "'"),
    ),
    LanguageDefinition(name="markdown"),
)


def default_language_table() -> LanguageTable:
    """Return a fresh table holding the bundled language definitions."""
    return LanguageTable.from_definitions(DEFAULT_LANGUAGES)


__all__ = [
    "DEFAULT_LANGUAGES",
    "LanguageDefinition",
    "LanguageTable",
    "default_language_table",
]
