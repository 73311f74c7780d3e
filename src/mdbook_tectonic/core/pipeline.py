"""One render pass: mdbook context in, Markdown, LaTeX and PDF out."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging
from pathlib import Path

from rich.console import Console
from slugify import slugify

from ..adapters.latex.renderer import LaTeXRenderer
from ..adapters.latex.tectonic import compile_pdf
from ..adapters.markdown import normalise_fence_info, render_markdown, rewrite_image_paths
from .book import SUPPORTED_MDBOOK_VERSION, BookContext, Chapter
from .config import LatexConfig
from .context import AssetRegistry, DocumentState
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import TemplateError
from .templates import UNKNOWN_TITLE, TemplateDocument, load_template


logger = logging.getLogger(__name__)

DEFAULT_STEM = "book"


@dataclass(slots=True)
class RenderResult:
    """Artefacts produced by :func:`render_book`."""

    title: str
    stem: str
    markdown: str
    latex: str
    document: str
    state: DocumentState
    markdown_path: Path | None = None
    latex_path: Path | None = None
    pdf_path: Path | None = None
    images: list[Path] = field(default_factory=list)


def output_stem(title: str | None) -> str:
    """File name stem shared by every output of a book."""
    stem = slugify(title or "", lowercase=False)
    return stem or DEFAULT_STEM


def check_version(context: BookContext, emitter: DiagnosticEmitter) -> bool:
    """Warn when mdbook's release line differs from the supported one."""
    if context.is_version_supported():
        return True
    emitter.warning(
        f"mdbook-tectonic targets mdbook {SUPPORTED_MDBOOK_VERSION}.x "
        f"but is being called from mdbook {context.version}"
    )
    emitter.event(
        "version_mismatch",
        {"running": context.version, "supported": SUPPORTED_MDBOOK_VERSION},
    )
    return False


def resolve_template(context: BookContext, config: LatexConfig) -> TemplateDocument:
    """Load the configured template, or the bundled one."""
    if config.custom_template is None:
        return load_template(aliases=config.language_aliases)
    path = Path(config.custom_template)
    if not path.is_absolute():
        path = context.root / path
    if not path.is_file():
        raise TemplateError(f"Custom template '{path}' does not exist")
    return load_template(path, aliases=config.language_aliases)


def collect_chapters(
    context: BookContext,
    ignores: Iterable[str] = (),
    emitter: DiagnosticEmitter | None = None,
) -> list[Chapter]:
    """Return exported chapters in reading order.

    Ignored chapters are skipped but their sub-chapters are still visited.
    """
    active_emitter = emitter or NullEmitter()
    ignored = set(ignores)
    chapters: list[Chapter] = []
    for chapter in context.book.iter_chapters():
        if chapter.name in ignored:
            active_emitter.event("chapter_skipped", {"chapter": chapter.name, "reason": "ignored"})
            continue
        if chapter.is_draft:
            active_emitter.event("chapter_skipped", {"chapter": chapter.name, "reason": "draft"})
            continue
        chapters.append(chapter)
    return chapters


def prepare_chapter(
    chapter: Chapter,
    assets: AssetRegistry | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Normalise code fences and relocate images of one chapter."""
    active_emitter = emitter or NullEmitter()
    content = normalise_fence_info(chapter.content)
    rewritten = rewrite_image_paths(content, chapter.directory.as_posix())
    if assets is not None:
        for image in rewritten.images:
            if assets.lookup(image.target) is not None:
                continue
            target = assets.register(image.target, image.source)
            active_emitter.event("image_copied", {"source": image.source, "target": target})
    return rewritten.content


def convert_markdown(
    sources: Sequence[str],
    renderer: LaTeXRenderer,
    *,
    state: DocumentState,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Convert chapters one by one and join the LaTeX."""
    parts: list[str] = []
    for source in sources:
        latex = renderer.render(render_markdown(source), state=state, emitter=emitter)
        if latex:
            parts.append(latex)
    return "\n".join(parts)


def build_document(
    template: TemplateDocument,
    body: str,
    *,
    title: str,
    authors: Sequence[str] = (),
    date: str = "",
    state: DocumentState | None = None,
) -> str:
    """Fill the metadata placeholders and splice ``body`` at the marker.

    ``title`` and ``authors`` must already be escaped.
    """
    document = template.with_metadata(title=title, authors=authors, date=date)
    preamble = ""
    if state is not None and state.pygments_styles:
        preamble = "".join(state.pygments_styles.values()).strip("\n") + "\n\n"
    return document.splice(preamble + body)


def render_book(
    context: BookContext,
    *,
    emitter: DiagnosticEmitter | None = None,
    console: Console | None = None,
) -> RenderResult:
    """Run the whole backend for a render context.

    Diagnostics go to :mod:`logging` unless ``emitter`` is given.
    """
    active_emitter = emitter or LoggingEmitter()
    check_version(context, active_emitter)

    config = context.latex_config
    template = resolve_template(context, config)
    renderer = LaTeXRenderer(template, config)
    state = DocumentState()

    metadata = context.config.book
    raw_title = metadata.title or UNKNOWN_TITLE
    stem = output_stem(metadata.title)
    destination = context.destination
    destination.mkdir(parents=True, exist_ok=True)

    assets = AssetRegistry(source_root=context.source_dir, output_root=destination)
    chapters = collect_chapters(context, config.ignores, active_emitter)
    sources = [prepare_chapter(chapter, assets, active_emitter) for chapter in chapters]
    combined_markdown = "\n\n".join(source.strip("\n") for source in sources) + "\n"

    result = RenderResult(
        title=raw_title,
        stem=stem,
        markdown=combined_markdown,
        latex="",
        document="",
        state=state,
        images=[path for _, path in assets.items()],
    )

    if config.markdown:
        result.markdown_path = _write(destination / f"{stem}.md", combined_markdown, active_emitter)

    if not (config.latex or config.pdf):
        return result

    result.latex = convert_markdown(sources, renderer, state=state, emitter=active_emitter)
    escape = renderer.formatter.escape
    result.document = build_document(
        template,
        result.latex,
        title=escape(raw_title),
        authors=[escape(author) for author in metadata.authors],
        date=config.date,
        state=state,
    )

    if config.latex:
        result.latex_path = _write(destination / f"{stem}.tex", result.document, active_emitter)

    if config.pdf:
        logger.info("Writing PDF with Tectonic")
        result.pdf_path = compile_pdf(
            result.document,
            destination / f"{stem}.pdf",
            configured_binary=config.tectonic,
            console=console,
        )
        active_emitter.event("output_written", {"kind": "pdf", "path": result.pdf_path})

    return result


def _write(path: Path, payload: str, emitter: DiagnosticEmitter) -> Path:
    path.write_text(payload, encoding="utf-8")
    emitter.event("output_written", {"kind": path.suffix.lstrip("."), "path": path})
    return path


__all__ = [
    "DEFAULT_STEM",
    "RenderResult",
    "build_document",
    "check_version",
    "collect_chapters",
    "convert_markdown",
    "output_stem",
    "prepare_chapter",
    "render_book",
    "resolve_template",
]
