"""Markdown conversion utilities for mdbook chapters."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import hashlib
import posixpath
import re
from urllib.parse import unquote, urlparse

import markdown


__all__ = [
    "DEFAULT_EXTENSION_CONFIGS",
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "ImageReference",
    "MarkdownConversionError",
    "RewrittenChapter",
    "map_outside_fences",
    "normalise_fence_info",
    "render_markdown",
    "rewrite_image_paths",
]


DEFAULT_MARKDOWN_EXTENSIONS = [
    "fenced_code",
    "tables",
    "footnotes",
    "sane_lists",
    "pymdownx.tilde",
    "pymdownx.tasklist",
]

DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "pymdownx.tilde": {"subscript": False},
    "pymdownx.tasklist": {"custom_checkbox": False},
}

IMAGES_DIR = "images"
EXTERNAL_DIR = "_external"

_FENCE_OPEN = re.compile(r"^(?P<indent>[ \t]{0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_IMAGE_PATTERN = re.compile(
    r"!\[(?P<alt>[^\]]*)\]"
    r"\(\s*(?P<path><[^>]*>|[^)\s]+)"
    r"(?P<title>\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)"
)
_IMAGE_REFERENCE_PATTERN = re.compile(r"!\[(?P<alt>[^\]]*)\](?:\[(?P<label>[^\]]*)\])?(?![(\[:])")
_DEFINITION_PATTERN = re.compile(
    r"^(?P<lead>[ ]{0,3}\[(?P<label>[^\]]+)\]:[ \t]*)(?P<path><[^>]*>|\S+)(?P<rest>.*)$"
)


class MarkdownConversionError(Exception):
    """Raised when Markdown cannot be converted into HTML."""


def render_markdown(
    source: str,
    extensions: Sequence[str] | None = None,
    extension_configs: dict[str, dict[str, object]] | None = None,
) -> str:
    """Convert Markdown source into HTML."""
    active_extensions = list(extensions or DEFAULT_MARKDOWN_EXTENSIONS)
    configs = {
        name: dict(options)
        for name, options in (extension_configs or DEFAULT_EXTENSION_CONFIGS).items()
        if name in active_extensions
    }
    try:
        processor = markdown.Markdown(extensions=active_extensions, extension_configs=configs)
        return processor.convert(source)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc


def map_outside_fences(
    source: str,
    transform: Callable[[str], str],
    *,
    fence_line: Callable[[re.Match[str]], str] | None = None,
) -> str:
    """Apply ``transform`` to every line that is not inside a fenced block.

    ``fence_line`` may rewrite the opening line of each fence.
    """
    lines = source.splitlines(keepends=True)
    output: list[str] = []
    closing: str | None = None
    for line in lines:
        stripped = line.rstrip("\r\n")
        if closing is None:
            match = _FENCE_OPEN.match(stripped)
            if match is not None and not (
                match.group("fence")[0] == "`" and "`" in match.group("info")
            ):
                closing = match.group("fence")
                if fence_line is not None:
                    output.append(fence_line(match) + line[len(stripped) :])
                else:
                    output.append(line)
                continue
            output.append(transform(line))
            continue

        candidate = stripped.strip()
        if candidate.startswith(closing) and set(candidate) == {closing[0]}:
            closing = None
        output.append(line)
    return "".join(output)


def _fence_language(info: str) -> str:
    cleaned = info.strip()
    if not cleaned or cleaned.startswith("{"):
        return cleaned
    return re.split(r"[\s,{]", cleaned, maxsplit=1)[0]


def normalise_fence_info(source: str) -> str:
    """Reduce mdbook fence attributes (``rust,ignore``) to the language name."""

    def _rewrite(match: re.Match[str]) -> str:
        language = _fence_language(match.group("info"))
        return f"{match.group('indent')}{match.group('fence')}{language}"

    return map_outside_fences(source, lambda line: line, fence_line=_rewrite)


@dataclass(frozen=True, slots=True)
class ImageReference:
    """An image found in a chapter and the location it is copied to."""

    source: str
    target: str


@dataclass(slots=True)
class RewrittenChapter:
    content: str
    images: list[ImageReference] = field(default_factory=list)


def _is_remote(path: str) -> bool:
    parsed = urlparse(path)
    return bool(parsed.scheme and (parsed.netloc or parsed.scheme == "data"))


def _image_target(chapter_dir: str, path: str) -> tuple[str, str]:
    """Return the source path relative to the book sources and the copy target.

    Images outside the book tree are grouped under ``images/_external`` in a
    directory named after their path, so equal basenames do not collide.
    """
    if path.startswith("/"):
        relative = posixpath.normpath(path.lstrip("/"))
    else:
        relative = posixpath.normpath(posixpath.join(chapter_dir or ".", path))
    if relative.startswith(".."):
        digest = hashlib.sha1(relative.encode("utf-8")).hexdigest()[:10]
        target = posixpath.join(IMAGES_DIR, EXTERNAL_DIR, digest, posixpath.basename(relative))
    else:
        target = posixpath.join(IMAGES_DIR, relative)
    return relative, target


def _normalise_label(label: str) -> str:
    return " ".join(label.split()).casefold()


def rewrite_image_paths(source: str, chapter_dir: str) -> RewrittenChapter:
    """Point local image references at ``images/<chapter dir>/<path>``.

    Inline images are rewritten in place; reference-style images through the
    link definitions they use. References inside fenced code blocks and
    remote URLs are left untouched.
    """
    images: list[ImageReference] = []
    image_labels: set[str] = set()

    def _collect_labels(line: str) -> str:
        for match in _IMAGE_REFERENCE_PATTERN.finditer(line):
            image_labels.add(_normalise_label(match.group("label") or match.group("alt")))
        return line

    map_outside_fences(source, _collect_labels)

    def _relocate(raw_path: str) -> str | None:
        if raw_path.startswith("<") and raw_path.endswith(">"):
            raw_path = raw_path[1:-1]
        if not raw_path or _is_remote(raw_path) or raw_path.startswith("#"):
            return None
        relative, target = _image_target(chapter_dir, unquote(raw_path))
        images.append(ImageReference(source=relative, target=target))
        return f"<{target}>" if " " in target else target

    def _inline(match: re.Match[str]) -> str:
        destination = _relocate(match.group("path"))
        if destination is None:
            return match.group(0)
        title = match.group("title") or ""
        return f"![{match.group('alt')}]({destination}{title})"

    def _definition(match: re.Match[str]) -> str:
        if _normalise_label(match.group("label")) not in image_labels:
            return match.group(0)
        destination = _relocate(match.group("path"))
        if destination is None:
            return match.group(0)
        return f"{match.group('lead')}{destination}{match.group('rest')}"

    def _rewrite(line: str) -> str:
        return _DEFINITION_PATTERN.sub(_definition, _IMAGE_PATTERN.sub(_inline, line))

    content = map_outside_fences(source, _rewrite)
    return RewrittenChapter(content=content, images=images)
