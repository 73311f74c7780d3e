"""Per-invocation CLI state: verbosity, consoles and message rendering."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
import logging
import sys
from typing import IO, TYPE_CHECKING, Any

import click

from mdbook_tectonic.core.exceptions import exception_hint, exception_messages


if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "CLIState",
    "configure_logging",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "set_cli_state",
]

PACKAGE_LOGGER = "mdbook_tectonic"

_LEVEL_STYLES = {"warning": "yellow", "error": "red"}


@dataclass(slots=True)
class CLIState:
    """Display settings of one ``mdbook-tectonic`` invocation."""

    verbosity: int = 0
    show_tracebacks: bool = False
    _consoles: dict[str, Console] = field(default_factory=dict, init=False, repr=False)

    def _bound_console(self, key: str, stream: IO[str], **options: Any) -> Console:
        from rich.console import Console

        console = self._consoles.get(key)
        # Consoles follow the current sys streams.
        if console is None or console.file is not stream:
            console = Console(file=stream, **options)
            self._consoles[key] = console
        return console

    @property
    def console(self) -> Console:
        """Console writing the artefact summary and ``-v`` messages to stdout."""
        return self._bound_console("out", sys.stdout)

    @property
    def err_console(self) -> Console:
        """Console for warnings, errors, logs and Tectonic output."""
        return self._bound_console("err", sys.stderr, highlight=False)

    @property
    def log_level(self) -> int:
        if self.verbosity >= 2 or self.show_tracebacks:
            return logging.DEBUG
        if self.verbosity == 1:
            return logging.INFO
        return logging.WARNING


_STATE_VAR: ContextVar[CLIState | None] = ContextVar("mdbook_tectonic_cli_state", default=None)


def _state_in(ctx: click.Context) -> CLIState | None:
    current: click.Context | None = ctx
    while current is not None:
        if isinstance(current.obj, CLIState):
            return current.obj
        current = current.parent
    return None


def get_cli_state(ctx: click.Context | None = None, *, create: bool = True) -> CLIState:
    """Return the state of the running command.

    Inside a click context the state lives on ``ctx.obj``; outside one the last
    state seen is reused.
    """
    if ctx is None:
        ctx = click.get_current_context(silent=True)

    state = _state_in(ctx) if ctx is not None else _STATE_VAR.get()
    if state is None:
        if not create:
            raise RuntimeError("CLI state is not initialised for this context.")
        state = CLIState()
        if ctx is not None:
            ctx.obj = state
    _STATE_VAR.set(state)
    return state


def set_cli_state(
    *,
    ctx: click.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
) -> CLIState:
    """Update the CLI state, returning the current instance."""
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def configure_logging(state: CLIState) -> None:
    """Send package logs to stderr through Rich at the state's level."""
    from rich.logging import RichHandler

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(state.log_level)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(
        RichHandler(console=state.err_console, show_path=False, show_time=False)
    )


def _exception_details(message: str, exception: BaseException, verbosity: int) -> list[str]:
    lines: list[str] = []
    hint = exception_hint(exception)
    if hint and hint not in message:
        lines.append(hint)
    lines.append(f"type: {type(exception).__name__}")
    causes = exception_messages(exception)[1:]
    if verbosity >= 2 and causes:
        lines.append("caused by:")
        lines.extend(f"  {cause}" for cause in causes)
    return lines


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
) -> None:
    """Print ``message``; info only with ``-v``, warnings and errors always."""
    state = get_cli_state()

    if level == "info":
        if state.verbosity >= 1:
            state.console.log(message)
        return

    from rich.text import Text

    style = _LEVEL_STYLES.get(level, "red")
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))
    if exception is not None and state.verbosity >= 1:
        details = _exception_details(message, exception, state.verbosity)
        text.append("\n" + "\n".join(details), style=style)
    state.err_console.print(text)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    render_message("warning", message, exception=exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    render_message("error", message, exception=exception)


def debug_enabled() -> bool:
    """Return whether ``--debug`` asked for full tracebacks."""
    try:
        return get_cli_state(create=False).show_tracebacks
    except RuntimeError:
        return False
