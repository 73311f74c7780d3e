"""Phase-ordered rule engine rewriting the chapter HTML tree into LaTeX.

Handlers declare the tags they handle with :func:`renders`. The engine groups
them per :class:`RenderPhase` and walks the BeautifulSoup tree once per phase.

`Declaration`
: ``@renders`` attaches a :class:`RuleDefinition` to the handler.

`Registry`
: :class:`RenderRegistry` keeps bound :class:`RenderRule` objects per phase
  and tag, sorted by priority then name.

`Execution`
: :class:`RenderEngine` runs document-level rules first, then lets
  :class:`_TreeWalker` visit every element depth-first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .context import RenderContext


class RenderPhase(Enum):
    """Ordered passes over the HTML tree.

    ``PRE``
    : escape text and turn code into opaque LaTeX before anything else.

    ``BLOCK``
    : reshape block structures (images, footnote definitions).

    ``INLINE``
    : inline formatting once blocks are settled.

    ``POST``
    : wrap headings, lists, tables and paragraphs, innermost first.
    """

    PRE = auto()
    BLOCK = auto()
    INLINE = auto()
    POST = auto()


RuleCallable = Callable[[Any, "RenderContext"], None]

DOCUMENT_NODE = "__document__"


@dataclass(frozen=True, slots=True)
class RuleDefinition:
    """Metadata recorded by :func:`renders` on a handler."""

    phase: RenderPhase
    tags: tuple[str, ...]
    priority: int = 0
    name: str | None = None
    auto_mark: bool = True
    nestable: bool = True
    after_children: bool = False

    def bind(self, handler: RuleCallable) -> RenderRule:
        return RenderRule(
            definition=self,
            name=self.name or getattr(handler, "__name__", type(handler).__name__),
            handler=handler,
        )


@dataclass(frozen=True, slots=True)
class RenderRule:
    """A definition bound to its callable."""

    definition: RuleDefinition
    name: str
    handler: RuleCallable

    @property
    def phase(self) -> RenderPhase:
        return self.definition.phase

    @property
    def tags(self) -> tuple[str, ...]:
        return self.definition.tags

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.definition.priority, self.name)

    def targets_document(self) -> bool:
        return self.definition.tags == (DOCUMENT_NODE,)


class RenderRegistry:
    """Rules grouped by phase and tag."""

    def __init__(self) -> None:
        self._rules: dict[RenderPhase, dict[str, list[RenderRule]]] = {
            phase: {} for phase in RenderPhase
        }

    def register(self, rule: RenderRule) -> None:
        bucket = self._rules[rule.phase]
        for tag in rule.tags:
            entries = bucket.setdefault(tag, [])
            entries.append(rule)
            entries.sort(key=lambda item: item.sort_key)

    def rules_for_phase(self, phase: RenderPhase) -> dict[str, tuple[RenderRule, ...]]:
        return {tag: tuple(rules) for tag, rules in self._rules[phase].items()}

    def describe(self) -> list[dict[str, object]]:
        """Return the registered rules in execution order."""
        rows: list[dict[str, object]] = []
        for phase in RenderPhase:
            for tag, rules in sorted(self._rules[phase].items()):
                for rule in rules:
                    rows.append(
                        {
                            "phase": phase.name,
                            "tag": tag,
                            "name": rule.name,
                            "priority": rule.definition.priority,
                        }
                    )
        return rows

    def __len__(self) -> int:
        seen = {
            id(rule)
            for buckets in self._rules.values()
            for rules in buckets.values()
            for rule in rules
        }
        return len(seen)


def renders(
    *tags: str,
    phase: RenderPhase = RenderPhase.BLOCK,
    priority: int = 0,
    name: str | None = None,
    auto_mark: bool = True,
    nestable: bool = True,
    after_children: bool = False,
) -> Callable[[RuleCallable], RuleCallable]:
    """Declare ``handler`` as the renderer of ``tags`` during ``phase``.

    Without tags the handler receives the document root once per phase.
    """
    definition = RuleDefinition(
        phase=phase,
        tags=tags or (DOCUMENT_NODE,),
        priority=priority,
        name=name,
        auto_mark=auto_mark,
        nestable=nestable,
        after_children=after_children,
    )

    def decorator(handler: RuleCallable) -> RuleCallable:
        handler.__render_rule__ = definition  # type: ignore[attr-defined]
        return handler

    return decorator


def rule_definition(handler: Any) -> RuleDefinition | None:
    """Return the definition attached to ``handler`` when present."""
    definition = getattr(handler, "__render_rule__", None)
    if definition is None and hasattr(handler, "__func__"):
        definition = getattr(handler.__func__, "__render_rule__", None)
    return definition if isinstance(definition, RuleDefinition) else None


class RenderEngine:
    """Run registered rules phase after phase."""

    def __init__(self, registry: RenderRegistry | None = None) -> None:
        self.registry = registry or RenderRegistry()

    def collect_from(self, owner: Any) -> None:
        """Register every decorated callable exposed by a module or object."""
        for attribute in dir(owner):
            handler = getattr(owner, attribute)
            definition = rule_definition(handler)
            if definition is not None:
                self.registry.register(definition.bind(handler))

    def register(self, handler: RuleCallable) -> None:
        definition = rule_definition(handler)
        if definition is None:
            raise TypeError("Handler must be decorated with @renders")
        self.registry.register(definition.bind(handler))

    def register_all(self, handlers: Iterable[RuleCallable]) -> None:
        for handler in handlers:
            self.register(handler)

    def run(self, root: Tag, context: RenderContext) -> None:
        for phase in RenderPhase:
            context.enter_phase(phase)
            rules = self.registry.rules_for_phase(phase)
            for rule in rules.get(DOCUMENT_NODE, ()):
                _apply(rule, root, context)
            _TreeWalker(rules, context).walk(root)


def _apply(rule: RenderRule, node: Any, context: RenderContext) -> None:
    definition = rule.definition
    if definition.auto_mark and context.is_processed(node):
        return
    rule.handler(node, context)
    if definition.auto_mark:
        context.mark_processed(node)
    if not definition.nestable:
        context.suppress_children(node)


class _TreeWalker:
    """Depth-first traversal dispatching elements to their rules."""

    def __init__(
        self,
        rules_by_tag: dict[str, tuple[RenderRule, ...]],
        context: RenderContext,
    ) -> None:
        self.rules_by_tag = rules_by_tag
        self.context = context

    def walk(self, node: Tag) -> None:
        self._dispatch(node, after_children=False)
        if self.context.should_skip_children(node):
            return
        # Handlers may replace children while we iterate.
        for child in list(getattr(node, "children", ())):
            if getattr(child, "name", None):
                self.walk(child)
        self._dispatch(node, after_children=True)

    def _dispatch(self, node: Tag, *, after_children: bool) -> None:
        tag_name = getattr(node, "name", None)
        if not tag_name:
            return
        for rule in self.rules_by_tag.get(tag_name, ()):
            if rule.definition.after_children != after_children:
                continue
            if rule.targets_document():
                continue
            # A previous rule may have detached the node.
            if node.parent is None and node.name != "[document]":
                return
            _apply(rule, node, self.context)


__all__ = [
    "DOCUMENT_NODE",
    "RenderEngine",
    "RenderPhase",
    "RenderRegistry",
    "RenderRule",
    "RuleDefinition",
    "renders",
    "rule_definition",
]
