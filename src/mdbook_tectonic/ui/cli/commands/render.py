"""Implementation of the default ``mdbook-tectonic`` command.

mdbook runs the backend without arguments, with the render context on stdin
and the output directory as working directory.
"""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Annotated

import typer

from mdbook_tectonic.adapters.latex.renderer import LaTeXRenderer
from mdbook_tectonic.core.book import BookContext, load_book_context
from mdbook_tectonic.core.exceptions import LatexRenderingError
from mdbook_tectonic.core.pipeline import render_book, resolve_template

from ..diagnostics import CliEmitter
from ..presenter import present_render_summary, present_rule_descriptions
from ..state import configure_logging, debug_enabled, emit_error, set_cli_state


DIAGNOSTICS_PANEL = "Diagnostics"
INPUTS_PANEL = "Input Handling"


def _read_context(context_file: Path | None) -> BookContext:
    if context_file is not None:
        try:
            payload = context_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise typer.BadParameter(f"Unable to read '{context_file}': {exc}") from exc
        return load_book_context(payload)
    return load_book_context(sys.stdin.read())


def render(
    ctx: typer.Context,
    context_file: Annotated[
        Path | None,
        typer.Option(
            "--context",
            "-c",
            help="Read the mdbook render context from FILE instead of stdin.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
            rich_help_panel=INPUTS_PANEL,
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Show full tracebacks when an unexpected error occurs.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
    debug_rules: Annotated[
        bool,
        typer.Option(
            "--debug-rules",
            help="Display the ordered list of registered render rules.",
            rich_help_panel=DIAGNOSTICS_PANEL,
        ),
    ] = False,
) -> None:
    """Render an mdbook book to LaTeX and PDF with Tectonic."""
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    configure_logging(state)

    if ctx.resilient_parsing or ctx.invoked_subcommand is not None:
        return

    try:
        book_context = _read_context(context_file)
        if debug_rules:
            config = book_context.latex_config
            renderer = LaTeXRenderer(resolve_template(book_context, config), config)
            present_rule_descriptions(state, renderer.describe_registered_rules())
        result = render_book(
            book_context,
            emitter=CliEmitter(state),
            console=state.err_console if state.verbosity >= 1 else None,
        )
    except LatexRenderingError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    present_render_summary(state, result)


__all__ = ["render"]
