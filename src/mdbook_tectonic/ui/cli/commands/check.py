"""Validate a custom LaTeX template before using it in a book."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from mdbook_tectonic.core.exceptions import LatexRenderingError
from mdbook_tectonic.core.templates import load_template

from ..state import debug_enabled, emit_error


def check_template(
    template: Annotated[
        Path,
        typer.Argument(
            metavar="TEMPLATE",
            help="LaTeX template to validate.",
            dir_okay=False,
        ),
    ],
) -> None:
    """Check the insertion marker and the configuration tables of TEMPLATE."""
    try:
        document = load_template(template)
    except LatexRenderingError as exc:
        if debug_enabled():
            raise
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"{template}: {len(document.languages)} languages, "
        f"{len(document.glyphs)} glyph substitutions"
    )


__all__ = ["check_template"]
