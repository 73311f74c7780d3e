"""Typer application wiring for the mdbook-tectonic CLI."""

from __future__ import annotations

from typing import NoReturn

import typer

from .commands import check_template, list_languages, render
from .state import emit_error, get_cli_state


app = typer.Typer(
    help="mdbook backend rendering books to LaTeX and PDF with Tectonic.",
    context_settings={"help_option_names": ["--help"]},
    invoke_without_command=True,
    no_args_is_help=False,
    add_completion=False,
)

# mdbook invokes the backend without arguments, so rendering is the callback.
app.callback()(render)
app.command(name="languages")(list_languages)
app.command(name="check")(check_template)


def _abort(message: str, exc: BaseException) -> NoReturn:
    state = get_cli_state()
    if state.show_tracebacks:
        from rich.traceback import Traceback

        state.err_console.print(
            Traceback.from_exception(
                type(exc), exc, exc.__traceback__, show_locals=state.verbosity >= 2
            )
        )
    else:
        emit_error(message, exception=exc)
    raise typer.Exit(code=1) from exc


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except (typer.Exit, SystemExit):
        raise
    except KeyboardInterrupt as exc:
        _abort("Interrupted while rendering the book.", exc)
    except Exception as exc:
        _abort(str(exc), exc)


__all__ = ["app", "main"]
