"""Rendering context primitives shared across the LaTeX pipeline."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
import shutil
from typing import TYPE_CHECKING, Any

from slugify import slugify

from .config import LatexConfig
from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import AssetMissingError


if TYPE_CHECKING:  # pragma: no cover - typing only
    from mdbook_tectonic.adapters.latex.formatter import LaTeXFormatter

    from .rules import RenderPhase
    from .templates import TemplateDocument


@dataclass(slots=True)
class DocumentState:
    """In-memory state accumulated while rendering one book."""

    headings: list[dict[str, Any]] = field(default_factory=list)
    labels: set[str] = field(default_factory=set)
    language_fallbacks: dict[str, int] = field(default_factory=dict)
    pygments_styles: dict[str, str] = field(default_factory=dict)
    counters: dict[str, int] = field(default_factory=dict)

    def add_heading(self, *, level: int, text: str, ref: str | None = None) -> None:
        self.headings.append({"level": level, "text": text, "ref": ref})

    def unique_label(self, text: str) -> str:
        """Return a label slug for ``text`` not used earlier in the book."""
        base = slugify(text) or "section"
        candidate = base
        suffix = 1
        while candidate in self.labels:
            candidate = f"{base}-{suffix}"
            suffix += 1
        self.labels.add(candidate)
        return candidate

    def record_fallback(self, language: str) -> int:
        """Count a code block rendered without highlighting rules."""
        count = self.language_fallbacks.get(language, 0) + 1
        self.language_fallbacks[language] = count
        return count

    def next_counter(self, key: str = "default") -> int:
        value = self.counters.get(key, 0) + 1
        self.counters[key] = value
        return value


@dataclass(slots=True)
class AssetRegistry:
    """Images referenced by the book and copied next to the outputs."""

    source_root: Path
    output_root: Path
    assets_map: MutableMapping[str, Path] = field(default_factory=dict)
    copy_assets: bool = True

    def register(self, key: str, source: Path | str) -> Path:
        """Copy ``source`` to ``output_root / key`` and remember it.

        ``source`` is resolved against ``source_root`` when relative.
        """
        origin = Path(source)
        if not origin.is_absolute():
            origin = self.source_root / origin
        if not origin.is_file():
            raise AssetMissingError(f"Image '{origin}' referenced by the book does not exist")

        target = self.output_root / key
        if self.copy_assets:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(origin, target)
        self.assets_map[key] = target
        return target

    def lookup(self, key: str) -> Path | None:
        stored = self.assets_map.get(key)
        return Path(stored) if stored is not None else None

    def get(self, key: str) -> Path:
        try:
            return Path(self.assets_map[key])
        except KeyError as exc:
            raise AssetMissingError(f"Missing asset '{key}'") from exc

    def items(self) -> Iterable[tuple[str, Path]]:
        return ((key, Path(value)) for key, value in self.assets_map.items())

    def __len__(self) -> int:
        return len(self.assets_map)


@dataclass
class RenderContext:
    """Shared context passed to every handler during rendering."""

    config: LatexConfig
    template: TemplateDocument
    formatter: LaTeXFormatter
    document: Any
    state: DocumentState = field(default_factory=DocumentState)
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)
    runtime: dict[str, Any] = field(default_factory=dict)
    phase: RenderPhase | None = None

    _processed_nodes: defaultdict[RenderPhase, set[int]] = field(
        default_factory=lambda: defaultdict(set), init=False
    )
    _skip_children: defaultdict[RenderPhase, set[int]] = field(
        default_factory=lambda: defaultdict(set), init=False
    )

    def enter_phase(self, phase: RenderPhase) -> None:
        self.phase = phase
        self._skip_children[phase].clear()

    def mark_processed(self, node: Any) -> None:
        if self.phase is not None:
            self._processed_nodes[self.phase].add(id(node))

    def is_processed(self, node: Any) -> bool:
        return self.phase is not None and id(node) in self._processed_nodes[self.phase]

    def suppress_children(self, node: Any) -> None:
        if self.phase is not None:
            self._skip_children[self.phase].add(id(node))

    def should_skip_children(self, node: Any) -> bool:
        return self.phase is not None and id(node) in self._skip_children[self.phase]


__all__ = ["AssetRegistry", "DocumentState", "RenderContext"]
