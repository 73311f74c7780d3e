"""Handlers for fenced code blocks and inline code."""

from __future__ import annotations

from bs4.element import Tag

from mdbook_tectonic.core.context import RenderContext
from mdbook_tectonic.core.languages import LanguageDefinition
from mdbook_tectonic.core.rules import RenderPhase, renders

from ._helpers import gather_classes, latex_node


_LANGUAGE_PREFIXES = ("language-", "lang-")


def extract_language(element: Tag) -> str | None:
    """Return the language tag Python-Markdown recorded on a code element."""
    for class_name in gather_classes(element.get("class")):
        for prefix in _LANGUAGE_PREFIXES:
            if class_name.startswith(prefix) and len(class_name) > len(prefix):
                return class_name[len(prefix) :]
    return None


def resolve_language(requested: str | None, context: RenderContext) -> LanguageDefinition | None:
    """Resolve a code block tag, recording a fallback when nothing matches."""
    if not requested:
        return None
    definition = context.template.languages.resolve(requested)
    if definition is None:
        occurrences = context.state.record_fallback(requested)
        if occurrences == 1:
            context.emitter.event("language_fallback", {"language": requested})
    return definition


@renders("pre", phase=RenderPhase.PRE, name="code_blocks", nestable=False)
def render_code_blocks(element: Tag, context: RenderContext) -> None:
    """Render ``<pre><code>`` blocks with the configured code engine."""
    code = element.find("code")
    target = code if isinstance(code, Tag) else element
    requested = extract_language(target) or extract_language(element)
    language = resolve_language(requested, context)

    latex = context.formatter.codeblock(
        target.get_text(),
        language,
        engine=context.config.code_engine,
        state=context.state,
    )
    element.replace_with(latex_node(f"\n{latex}\n"))


@renders("code", phase=RenderPhase.PRE, name="inline_code", nestable=False)
def render_inline_code(element: Tag, context: RenderContext) -> None:
    """Render inline code spans in a typewriter font."""
    if element.find_parent("pre") is not None:
        return
    element.replace_with(latex_node(context.formatter.codeinline(element.get_text())))


__all__ = ["extract_language", "render_code_blocks", "render_inline_code", "resolve_language"]
