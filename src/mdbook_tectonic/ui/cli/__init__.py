"""Public CLI exports for mdbook-tectonic."""

from __future__ import annotations

from .app import app, main
from .commands import check_template, list_languages, render
from .diagnostics import CliEmitter
from .state import debug_enabled, emit_error, emit_warning, get_cli_state


__all__ = [
    "CliEmitter",
    "app",
    "check_template",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "list_languages",
    "main",
    "render",
]
