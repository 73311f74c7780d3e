"""Render diagnostics shown on the terminal."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mdbook_tectonic.core.diagnostics import RecordingEmitter, format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


class CliEmitter(RecordingEmitter):
    """Keep every diagnostic of a render and echo it through the CLI consoles.

    Events with a summary are printed with ``-v``; the others only with
    ``-vv``.
    """

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self.state = state or get_cli_state()
        if debug_enabled is None:
            debug_enabled = self.state.show_tracebacks
        super().__init__(debug_enabled=debug_enabled)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        super().warning(message, exc)
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        super().error(message, exc)
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        super().event(name, payload)
        summary = format_event_message(name, payload)
        if summary is not None:
            render_message("info", summary)
        elif self.state.verbosity >= 2:
            render_message("info", f"{name}: {dict(payload)}")


__all__ = ["CliEmitter"]
