"""Jinja environment configured for LaTeX sources."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined


def latex_environment(template_dir: Path, *, strict: bool = False) -> Environment:
    """Return an environment whose delimiters do not clash with TeX braces."""
    options: dict[str, object] = {}
    if strict:
        options["undefined"] = StrictUndefined
    return Environment(
        block_start_string=r"\BLOCK{",
        block_end_string=r"}",
        variable_start_string=r"\VAR{",
        variable_end_string=r"}",
        comment_start_string=r"\COMMENT{",
        comment_end_string=r"}",
        loader=FileSystemLoader(template_dir),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        **options,
    )


__all__ = ["latex_environment"]
