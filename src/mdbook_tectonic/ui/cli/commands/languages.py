"""List the languages a template can highlight."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from mdbook_tectonic.core.exceptions import LatexRenderingError
from mdbook_tectonic.core.templates import load_template

from ..presenter import present_languages
from ..state import debug_enabled, emit_error, get_cli_state


def list_languages(
    template: Annotated[
        Path | None,
        typer.Option(
            "--template",
            "-t",
            help="Read the language table from this template instead of the bundled one.",
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Print the language table declared by a template."""
    state = get_cli_state()
    try:
        document = load_template(template)
    except LatexRenderingError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    present_languages(state, document.languages)


__all__ = ["list_languages"]
