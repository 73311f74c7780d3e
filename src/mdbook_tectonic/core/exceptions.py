"""Exception hierarchy for the book rendering pipeline."""

from __future__ import annotations


class LatexRenderingError(RuntimeError):
    """Base exception for every failure that aborts a render pass."""


class ConfigurationError(LatexRenderingError):
    """Raised when the template tables or the backend options are inconsistent."""


class TemplateError(LatexRenderingError):
    """Raised when a template cannot be read or rendered."""


class SpliceError(TemplateError):
    """Raised when the insertion marker is missing or duplicated."""


class BookContextError(LatexRenderingError):
    """Raised when the mdbook render context cannot be decoded."""


class AssetMissingError(LatexRenderingError):
    """Raised when an image referenced by a chapter cannot be located."""


class InvalidNodeError(LatexRenderingError):
    """Raised when a handler receives an unexpected DOM node shape."""


class CompilationError(LatexRenderingError):
    """Raised when Tectonic exits with a non-zero status."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class TectonicNotFoundError(CompilationError):
    """Raised when no Tectonic binary can be located."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "AssetMissingError",
    "BookContextError",
    "CompilationError",
    "ConfigurationError",
    "InvalidNodeError",
    "LatexRenderingError",
    "SpliceError",
    "TectonicNotFoundError",
    "TemplateError",
    "exception_hint",
    "exception_messages",
]
